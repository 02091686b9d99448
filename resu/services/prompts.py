"""System prompts and user-message builders for the generation steps.

Prompts ask for snake_case JSON matching the pydantic schemas; the normalizer
tolerates the usual deviations.
"""

import json
import logging

from resu.schemas.generation import GenerationConfig
from resu.schemas.job import ParsedJobDescription
from resu.schemas.profile import PersonalProfile, ProfileExperience
from resu.schemas.selection import RelevanceSelection, SelectedExperience

logger = logging.getLogger(__name__)

# Cover letter context limits
TOP_BULLETS = 3
KEY_SKILLS = 8

PARSE_JD_PROMPT = """You are a job description analyzer. Extract structured information and return ONLY a JSON object.

Required JSON structure:
{
  "company_name": "string",
  "role_title": "string",
  "seniority_level": "intern|junior|mid|senior|staff|principal|lead|manager|director|unknown",
  "required_skills": ["..."],
  "preferred_skills": ["..."],
  "keywords": ["every important term a recruiter would search for"],
  "responsibilities": ["..."],
  "qualifications": ["..."],
  "nice_to_haves": ["..."],
  "industry_domain": "string or null",
  "team_size": "string or null",
  "tech_stack": ["..."]
}

Rules:
1. Return ONLY the JSON object, no markdown formatting or commentary
2. Use the exact wording of the posting for skills and keywords
3. If a skill appears with variations (e.g. "Python", "Python 3"), use the shortest form
4. Use "unknown" when the seniority is not stated or implied"""

SELECT_RELEVANT_PROMPT = """You are a resume strategist. Given a candidate's master profile and a parsed job description, choose the profile items that make the strongest case for this role. Return ONLY a JSON object.

Required JSON structure:
{
  "proposed_summary": "2-3 sentence summary tailored to the role",
  "selected_experiences": [
    {
      "experience_id": "id from the profile",
      "include": true,
      "selected_bullets": [
        {
          "bullet_index": 0,
          "original_text": "bullet text copied verbatim from the profile",
          "relevance_score": 0-100,
          "matched_keywords": ["..."]
        }
      ]
    }
  ],
  "selected_skills": ["skill names from the profile"],
  "selected_projects": ["project ids from the profile"],
  "selected_certifications": ["certification ids from the profile"],
  "overall_match_score": 0-100
}

Rules:
1. Only reference IDs and bullet indexes that exist in the profile
2. Prefer bullets with measurable impact that match required skills
3. Honour the user's skills to emphasize and target page length"""

GENERATE_RESUME_PROMPT = """You are an expert resume writer. Write a polished, ATS-friendly resume from the selected profile items only. Return ONLY a JSON object.

Target length: {target_page_length} page(s). Tone: {tone}.

Required JSON structure:
{{
  "contact": {{"name": "", "email": "", "phone": null, "location": null, "linkedin": null, "github": null, "website": null}},
  "summary": "",
  "experience": [{{"title": "", "company": "", "location": null, "start_date": "", "end_date": null, "bullets": [""]}}],
  "education": [{{"institution": "", "degree": "", "field": "", "start_date": "", "end_date": null, "gpa": null, "highlights": []}}],
  "skills": {{"categories": [{{"name": "", "skills": [""]}}]}},
  "projects": [{{"name": "", "description": "", "url": null, "highlights": [""]}}],
  "certifications": [{{"name": "", "issuer": "", "date": ""}}]
}}

Rules:
1. Never invent employers, dates, degrees or metrics
2. Rewrite bullets to start with strong action verbs and weave in job keywords naturally
3. Use null for an end_date when the role is current"""

GENERATE_COVER_LETTER_PROMPT = """You are an expert cover letter writer. Write a concise, specific cover letter in a {tone} tone. Return ONLY a JSON object.

Required JSON structure:
{{
  "opening": "paragraph",
  "body_paragraphs": ["paragraph", "paragraph"],
  "closing": "paragraph",
  "tone": "{tone}"
}}

Rules:
1. Reference the company and role by name
2. Ground every claim in the provided experience bullets
3. Keep it under 350 words"""


def parse_jd_message(jd_text: str, config: GenerationConfig | None) -> str:
    """Job text plus optional company/role disambiguation notes."""
    message = f"Job Description:\n\n{jd_text}"
    if config and config.company_name:
        message += f'\n\nNote: The company is "{config.company_name}".'
    if config and config.role_title:
        message += f'\n\nNote: The role title is "{config.role_title}".'
    return message


def select_relevant_message(
    profile: PersonalProfile,
    parsed_jd: ParsedJobDescription,
    config: GenerationConfig | None,
) -> str:
    config = config or GenerationConfig()
    return json.dumps(
        {
            "profile": profile.model_dump(mode="json"),
            "parsed_job_description": parsed_jd.model_dump(mode="json"),
            "user_preferences": {
                "skills_to_emphasize": config.skills_to_emphasize,
                "target_page_length": config.target_page_length,
            },
        },
        indent=2,
    )


def _selected_bullet_texts(
    experience: ProfileExperience, selected: SelectedExperience
) -> list[str]:
    """Bullet texts for one included experience, as captured at selection time.

    Bullet indexes are not re-validated against the profile; a mismatch is
    logged and the captured text is used as-is.
    """
    texts = []
    for bullet in selected.selected_bullets:
        if (
            bullet.bullet_index >= len(experience.bullets)
            or experience.bullets[bullet.bullet_index].text != bullet.original_text
        ):
            logger.warning(
                f"Stale bullet reference {experience.id}[{bullet.bullet_index}]; "
                "using text captured at selection time"
            )
        texts.append(bullet.original_text)
    return texts


def _included_experiences(
    profile: PersonalProfile, selection: RelevanceSelection
) -> list[tuple[ProfileExperience, SelectedExperience]]:
    """Included selection entries paired with their profile experience.

    Entries whose ID is not in the profile are skipped with a warning.
    """
    pairs = []
    for selected in selection.included_experiences():
        experience = profile.find_experience(selected.experience_id)
        if experience is None:
            logger.warning(f"Selected experience {selected.experience_id} not in profile")
            continue
        pairs.append((experience, selected))
    return pairs


def generate_resume_message(
    profile: PersonalProfile,
    parsed_jd: ParsedJobDescription,
    selection: RelevanceSelection,
    config: GenerationConfig,
) -> str:
    """Only the included profile items, the parsed JD and the length target."""
    selected_experiences = [
        {
            "title": experience.title,
            "company": experience.company,
            "location": experience.location,
            "start_date": experience.start_date,
            "end_date": experience.end_date,
            "selected_bullets": _selected_bullet_texts(experience, selected),
        }
        for experience, selected in _included_experiences(profile, selection)
    ]

    return json.dumps(
        {
            "contact": profile.contact.model_dump(mode="json"),
            "proposed_summary": selection.proposed_summary,
            "selected_experiences": selected_experiences,
            "selected_skills": [
                skill.model_dump(mode="json")
                for skill in profile.skills
                if skill.name in selection.selected_skills
            ],
            "education": [edu.model_dump(mode="json") for edu in profile.education],
            "selected_projects": [
                project.model_dump(mode="json")
                for project in profile.projects
                if project.id in selection.selected_projects
            ],
            "selected_certifications": [
                cert.model_dump(mode="json")
                for cert in profile.certifications
                if cert.id in selection.selected_certifications
            ],
            "parsed_job_description": parsed_jd.model_dump(mode="json"),
            "target_page_length": config.target_page_length,
            "tone": config.tone,
        },
        indent=2,
    )


def cover_letter_message(
    profile: PersonalProfile,
    parsed_jd: ParsedJobDescription,
    selection: RelevanceSelection,
    config: GenerationConfig,
) -> str:
    """Candidate, role, summary, top bullets per included experience and key skills."""
    experiences = [
        {
            "title": experience.title,
            "company": experience.company,
            "top_bullets": [b.original_text for b in selected.selected_bullets[:TOP_BULLETS]],
        }
        for experience, selected in _included_experiences(profile, selection)
    ]

    return json.dumps(
        {
            "candidate_name": profile.contact.name,
            "company_name": parsed_jd.company_name,
            "role_title": parsed_jd.role_title,
            "proposed_summary": selection.proposed_summary,
            "selected_experiences": experiences,
            "key_skills": selection.selected_skills[:KEY_SKILLS],
            "parsed_job_description": {
                "required_skills": parsed_jd.required_skills,
                "responsibilities": parsed_jd.responsibilities,
                "industry_domain": parsed_jd.industry_domain,
            },
            "tone": config.tone,
        },
        indent=2,
    )
