import json

import pytest

from conftest import COVER_LETTER, PARSED_JD, RESUME_DATA, SELECTION
from resu.exceptions import ValidationFailed
from resu.schemas.cover_letter import CoverLetterData
from resu.schemas.job import ParsedJobDescription
from resu.schemas.resume import ResumeData
from resu.schemas.selection import RelevanceSelection
from resu.services.normalizer import (
    DEFAULT_SKILL_CATEGORY,
    load_json_payload,
    normalize,
    parse_completion,
    to_skills_section,
)


def test_nested_wrappers_normalize_like_inner_object():
    inner = normalize(RESUME_DATA, ResumeData)
    wrapped = normalize({"result": {"resumeData": RESUME_DATA}}, ResumeData)
    assert wrapped == inner


def test_camel_case_job_description_aliases():
    raw = {
        "companyName": "Acme Corp",
        "jobTitle": "Platform Engineer",
        "seniority": "Senior",
        "requiredSkills": [{"name": "Python"}, "Go"],
        "techStack": "Kubernetes",
        "industry": "",
    }
    parsed = normalize(raw, ParsedJobDescription)
    assert parsed.company_name == "Acme Corp"
    assert parsed.role_title == "Platform Engineer"
    assert parsed.seniority_level == "senior"
    assert parsed.required_skills == ["Python", "Go"]
    assert parsed.tech_stack == ["Kubernetes"]
    assert parsed.industry_domain is None
    assert parsed.preferred_skills == []


def test_unrecognized_seniority_becomes_unknown():
    parsed = normalize(
        {"company": "Acme", "title": "Engineer", "level": "rockstar"},
        ParsedJobDescription,
    )
    assert parsed.seniority_level == "unknown"


def test_selection_bullets_inherit_experience_id_and_coerce_scores():
    raw = {
        "relevanceSelection": {
            "summary": "Fit for the role",
            "experiences": [
                {
                    "id": "exp-globex",
                    "included": "yes",
                    "bullets": [
                        {"index": "1", "text": "Cut SQL query latency by 40%", "score": "85%"}
                    ],
                }
            ],
            "skills": [{"name": "SQL"}],
            "projects": [{"id": "proj-cli"}],
            "matchScore": "70",
        }
    }
    selection = normalize(raw, RelevanceSelection)
    experience = selection.selected_experiences[0]
    bullet = experience.selected_bullets[0]
    assert experience.experience_id == "exp-globex"
    assert experience.include is True
    assert bullet.experience_id == "exp-globex"
    assert bullet.bullet_index == 1
    assert bullet.relevance_score == 85
    assert selection.selected_skills == ["SQL"]
    assert selection.selected_projects == ["proj-cli"]
    assert selection.overall_match_score == 70


def test_resume_field_aliases_and_present_end_date():
    raw = {
        "contactInfo": {"fullName": "Jane Doe", "emailAddress": "jane@example.com"},
        "professionalSummary": "Engineer",
        "workExperience": {
            "position": "Backend Engineer",
            "employer": "Globex",
            "startDate": "2021-03",
            "endDate": "Present",
            "achievements": [{"text": "Built APIs"}],
        },
    }
    resume = normalize(raw, ResumeData)
    assert resume.contact.name == "Jane Doe"
    assert resume.summary == "Engineer"
    assert len(resume.experience) == 1
    assert resume.experience[0].end_date is None
    assert resume.experience[0].bullets == ["Built APIs"]
    assert resume.skills.categories == []


@pytest.mark.parametrize(
    "raw, expected",
    [
        (["Python", "SQL"], [(DEFAULT_SKILL_CATEGORY, ["Python", "SQL"])]),
        ([{"name": "Python"}, {"name": "SQL"}], [(DEFAULT_SKILL_CATEGORY, ["Python", "SQL"])]),
        (
            [{"category": "Languages", "items": ["Python"]}],
            [("Languages", ["Python"])],
        ),
        (
            {"Languages": ["Python"], "Tools": "Docker"},
            [("Languages", ["Python"]), ("Tools", ["Docker"])],
        ),
        ({"categories": [{"name": "Data", "skills": ["SQL"]}]}, [("Data", ["SQL"])]),
        (42, []),
    ],
)
def test_skills_section_shapes(raw, expected):
    section = to_skills_section(raw)
    assert [(c["name"], c["skills"]) for c in section["categories"]] == expected


def test_missing_contact_name_reports_field_path():
    raw = {**RESUME_DATA, "contact": {"email": "jane@example.com"}}
    with pytest.raises(ValidationFailed) as exc_info:
        normalize(raw, ResumeData)
    assert exc_info.value.field_path == "contact.name"


def test_non_object_payload_is_rejected():
    with pytest.raises(ValidationFailed) as exc_info:
        normalize(["not", "an", "object"], CoverLetterData)
    assert exc_info.value.field_path == "$"


def test_cover_letter_unknown_tone_falls_back():
    letter = normalize({**COVER_LETTER, "tone": "enthusiastic"}, CoverLetterData)
    assert letter.tone == "professional"


def test_load_json_payload_strategies():
    payload = {"company_name": "Acme"}
    assert load_json_payload(json.dumps(payload)) == payload
    assert load_json_payload(f"```json\n{json.dumps(payload)}\n```") == payload
    assert load_json_payload(f"Sure! {json.dumps(payload)} Hope this helps.") == payload


def test_load_json_payload_rejects_prose():
    with pytest.raises(ValidationFailed):
        load_json_payload("I could not parse that job description.")


def test_parse_completion_round_trips_fixtures():
    parsed = parse_completion(json.dumps({"data": PARSED_JD}), ParsedJobDescription)
    assert parsed == ParsedJobDescription.model_validate(PARSED_JD)
    selection = parse_completion(json.dumps(SELECTION), RelevanceSelection)
    assert selection.selected_experiences[0].selected_bullets[0].experience_id == "exp-globex"
