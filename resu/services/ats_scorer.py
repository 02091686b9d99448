"""ATS scoring service.

Pure code, no LLM: scores finished resume content against a parsed job
description. Identical inputs always yield identical results, so the score can
be recomputed freely after manual edits.

Composite score:
    50% keyword match + 30% section completeness + 20% format quality
"""

import math

from resu.schemas.ats import ATSScoreResult, ATSSuggestion
from resu.schemas.job import ParsedJobDescription
from resu.schemas.resume import ResumeData

KEYWORD_WEIGHT = 0.5
SECTION_WEIGHT = 0.3
FORMAT_WEIGHT = 0.2

SECTION_PENALTY = 25
MAX_MISSING_KEYWORDS_SHOWN = 5

MIN_BULLETS_PER_ROLE = 2
MAX_BULLETS_PER_ROLE = 8
BULLETS_PER_PAGE = 6
MAX_PAGES = 2


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (round() is banker's)."""
    return int(math.floor(value + 0.5))


def jd_keywords(parsed_jd: ParsedJobDescription) -> list[str]:
    """Case-folded, de-duplicated JD keywords in first-seen order."""
    terms = [
        *parsed_jd.required_skills,
        *parsed_jd.preferred_skills,
        *parsed_jd.keywords,
        *parsed_jd.tech_stack,
    ]
    return list(dict.fromkeys(t.strip().lower() for t in terms if t.strip()))


def resume_text(resume: ResumeData) -> str:
    """Flatten all scoreable resume text into one lower-cased string."""
    parts = [resume.summary]
    for exp in resume.experience:
        parts.extend([exp.title, exp.company, *exp.bullets])
    for category in resume.skills.categories:
        parts.extend(category.skills)
    for project in resume.projects:
        parts.extend([project.name, project.description, *project.highlights])
    parts.extend(cert.name for cert in resume.certifications)
    return " ".join(parts).lower()


def _keyword_score(
    resume: ResumeData, parsed_jd: ParsedJobDescription
) -> tuple[int, list[ATSSuggestion]]:
    keywords = jd_keywords(parsed_jd)
    if not keywords:
        return 100, []

    text = resume_text(resume)
    missing = [k for k in keywords if k not in text]
    matched = len(keywords) - len(missing)
    score = round_half_up(matched / len(keywords) * 100)

    required = {s.strip().lower() for s in parsed_jd.required_skills}
    missing_required = [k for k in missing if k in required]
    missing_other = [k for k in missing if k not in required]

    suggestions = []
    if missing_required:
        shown = ", ".join(missing_required[:MAX_MISSING_KEYWORDS_SHOWN])
        suggestions.append(ATSSuggestion(
            type="keyword",
            severity="critical",
            message=f"Missing required keywords: {shown}",
        ))
    if missing_other:
        shown = ", ".join(missing_other[:MAX_MISSING_KEYWORDS_SHOWN])
        suggestions.append(ATSSuggestion(
            type="keyword",
            severity="warning",
            message=f"Missing preferred keywords: {shown}",
        ))
    return score, suggestions


def _section_score(resume: ResumeData) -> tuple[int, list[ATSSuggestion]]:
    checks = [
        ("Summary", bool(resume.summary)),
        ("Experience", bool(resume.experience)),
        ("Education", bool(resume.education)),
        ("Skills", bool(resume.skills.categories)),
    ]

    score = 100
    suggestions = []
    for name, present in checks:
        if not present:
            score -= SECTION_PENALTY
            suggestions.append(ATSSuggestion(
                type="section",
                severity="critical",
                message=f'Missing "{name}" section - most ATS systems expect this',
            ))
    return max(0, score), suggestions


def _format_score(resume: ResumeData) -> tuple[int, list[ATSSuggestion]]:
    score = 100
    suggestions = []

    # Bullet density per role
    for exp in resume.experience:
        label = f'"{exp.title} @ {exp.company}"'
        count = len(exp.bullets)
        if count < MIN_BULLETS_PER_ROLE:
            score -= 10
            suggestions.append(ATSSuggestion(
                type="density",
                severity="warning",
                message=f"{label} has only {count} bullet(s) - aim for 3-5",
            ))
        if count > MAX_BULLETS_PER_ROLE:
            score -= 5
            suggestions.append(ATSSuggestion(
                type="density",
                severity="info",
                message=f"{label} has {count} bullets - consider trimming to 5-6",
            ))

    # Rough length estimate: ~6 bullets per page
    total_bullets = sum(len(exp.bullets) for exp in resume.experience)
    estimated_pages = math.ceil(total_bullets / BULLETS_PER_PAGE)
    if estimated_pages > MAX_PAGES:
        score -= 10
        suggestions.append(ATSSuggestion(
            type="length",
            severity="warning",
            message=(
                f"Resume may be too long (~{estimated_pages} pages estimated). "
                "Consider trimming."
            ),
        ))

    for exp in resume.experience:
        if not exp.start_date.strip():
            score -= 5
            suggestions.append(ATSSuggestion(
                type="format",
                severity="warning",
                message=f'"{exp.title} @ {exp.company}" is missing a start date',
            ))

    return max(0, score), suggestions


def score_ats(resume: ResumeData, parsed_jd: ParsedJobDescription) -> ATSScoreResult:
    """Score resume content against a parsed job description.

    Args:
        resume: Final resume content
        parsed_jd: Parsed job description for the target role

    Returns:
        ATSScoreResult with composite score, sub-scores and suggestions
        ordered keyword, section, format
    """
    keyword_match, keyword_hints = _keyword_score(resume, parsed_jd)
    section_score, section_hints = _section_score(resume)
    format_score, format_hints = _format_score(resume)

    score = round_half_up(
        keyword_match * KEYWORD_WEIGHT
        + section_score * SECTION_WEIGHT
        + format_score * FORMAT_WEIGHT
    )

    return ATSScoreResult(
        score=min(100, max(0, score)),
        keyword_match=keyword_match,
        section_score=section_score,
        format_score=format_score,
        suggestions=[*keyword_hints, *section_hints, *format_hints],
    )
