"""Normalization of generator output into strict schemas.

Completion output is JSON-ish but not trustworthy: models rename keys, wrap the
payload in containers, and return objects where strings are expected. This
module is the only place where that untyped value is reconciled with the
pydantic models. Everything downstream sees validated records.

Each target shape is described declaratively: a table mapping every schema
field to its accepted aliases, a coercion rule and a default. Supporting a new
alias means adding a string to a tuple.
"""

import json
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from resu.exceptions import ValidationFailed
from resu.schemas.cover_letter import CoverLetterData
from resu.schemas.job import SENIORITY_LEVELS, ParsedJobDescription
from resu.schemas.resume import ResumeData
from resu.schemas.selection import RelevanceSelection

ModelT = TypeVar("ModelT", bound=BaseModel)

MISSING: Any = object()

# Wrappers are peeled at most this many times, e.g. {"result": {"resume": {...}}}
MAX_UNWRAP_DEPTH = 3

DEFAULT_SKILL_CATEGORY = "Technical Skills"

# Keys tried, in order, when an object shows up where a string is expected
TEXT_KEYS = ("text", "bullet", "content", "description", "name", "value")
NAME_KEYS = ("name", "skill", "id", "title")
ID_KEYS = ("id", "name", "title")

PRESENT_MARKERS = {"present", "current", "now", "ongoing"}
TONES = ("formal", "professional", "conversational")


# ─── Coercion rules ───


def identity(value: Any) -> Any:
    return value


def to_text(value: Any, keys: tuple[str, ...] = TEXT_KEYS) -> Any:
    """Reduce scalars and single-field objects to a string.

    Anything else is returned untouched so validation can report it.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, dict):
        for key in keys:
            if isinstance(value.get(key), str):
                return value[key]
    return value


def to_optional_text(value: Any) -> Any:
    value = to_text(value)
    if isinstance(value, str) and not value.strip():
        return None
    return value


def text_list(keys: tuple[str, ...] = TEXT_KEYS) -> Callable[[Any], Any]:
    """Build a rule that coerces a value into a list of strings."""

    def rule(value: Any) -> Any:
        if isinstance(value, str):
            return [value] if value.strip() else []
        if isinstance(value, list):
            return [to_text(item, keys) for item in value if item is not None]
        return value

    return rule


def to_number(value: Any) -> Any:
    """Parse numeric strings such as "85" or "85%"."""
    if isinstance(value, str):
        cleaned = value.strip().rstrip("%").strip()
        try:
            return float(cleaned)
        except ValueError:
            return value
    return value


def to_int(value: Any) -> Any:
    value = to_number(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def to_bool(value: Any) -> Any:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return value


def to_end_date(value: Any) -> Any:
    """Map "Present"-style markers to None (an open-ended role)."""
    value = to_optional_text(value)
    if isinstance(value, str) and value.strip().lower() in PRESENT_MARKERS:
        return None
    return value


def to_seniority(value: Any) -> Any:
    value = to_text(value)
    if not isinstance(value, str):
        return value
    lowered = value.strip().lower()
    return lowered if lowered in SENIORITY_LEVELS else "unknown"


def to_tone(value: Any) -> Any:
    value = to_text(value)
    if not isinstance(value, str):
        return value
    lowered = value.strip().lower()
    return lowered if lowered in TONES else "professional"


def _category(name: Any, skills: Any) -> dict[str, Any]:
    return {
        "name": to_text(name) if name is not None else "Other",
        "skills": text_list(NAME_KEYS)(skills) if skills is not None else [],
    }


def _category_from_object(item: Any) -> Any:
    if not isinstance(item, dict):
        return item
    return _category(
        item.get("name", item.get("category")),
        item.get("skills", item.get("items")),
    )


def _is_category_object(item: Any) -> bool:
    return isinstance(item, dict) and ("skills" in item or "items" in item)


def to_skills_section(value: Any) -> Any:
    """Coerce the many shapes of a skills section into ``{"categories": [...]}``.

    Rules, first match wins:
        1. ``{"categories": [...]}``
        2. list of ``{name|category, skills|items}`` objects
        3. flat list of skills -> one synthetic category
        4. object keyed by category name -> one category per list value
        5. anything else -> no categories
    """
    if isinstance(value, dict) and isinstance(value.get("categories"), list):
        return {
            "categories": [_category_from_object(item) for item in value["categories"]]
        }

    if isinstance(value, list):
        if value and _is_category_object(value[0]):
            return {
                "categories": [_category_from_object(item) for item in value]
            }
        skills = text_list(NAME_KEYS)(value)
        if not skills:
            return {"categories": []}
        return {"categories": [{"name": DEFAULT_SKILL_CATEGORY, "skills": skills}]}

    if isinstance(value, dict):
        categories = [
            _category(name, skills)
            for name, skills in value.items()
            if isinstance(skills, (list, str))
        ]
        return {"categories": categories}

    return {"categories": []}


# ─── Shape descriptions ───


@dataclass(frozen=True)
class FieldRule:
    """How to find and coerce one schema field.

    Attributes:
        aliases: Key names tried in order; the first non-null one wins
        coerce: Rule applied to the found value
        default: Value (or zero-arg factory) used when no alias is present;
            MISSING leaves the field out so validation reports it
    """

    aliases: tuple[str, ...]
    coerce: Callable[[Any], Any] = identity
    default: Any = MISSING


@dataclass(frozen=True)
class Shape:
    """Alias table for one record type."""

    name: str
    fields: dict[str, FieldRule]
    wrappers: tuple[str, ...] = ()
    finalize: Callable[[dict[str, Any]], dict[str, Any]] | None = None
    known_keys: frozenset[str] = field(init=False)

    def __post_init__(self):
        keys = frozenset(alias for rule in self.fields.values() for alias in rule.aliases)
        object.__setattr__(self, "known_keys", keys)


def shape_of(shape: Shape) -> Callable[[Any], Any]:
    return lambda value: normalize_shape(value, shape)


def list_of(shape: Shape) -> Callable[[Any], Any]:
    """Rule for a list of nested records; a lone object becomes a one-item list."""

    def rule(value: Any) -> Any:
        if isinstance(value, dict):
            value = [value]
        if isinstance(value, list):
            return [normalize_shape(item, shape) for item in value if item is not None]
        return value

    return rule


def _text(*aliases: str) -> FieldRule:
    return FieldRule(aliases, to_text, "")


def _optional(*aliases: str) -> FieldRule:
    return FieldRule(aliases, to_optional_text, None)


def _texts(*aliases: str, keys: tuple[str, ...] = TEXT_KEYS) -> FieldRule:
    return FieldRule(aliases, text_list(keys), list)


JOB_DESCRIPTION_SHAPE = Shape(
    name="parsed_jd",
    wrappers=(
        "result", "parsed_jd", "parsedJD", "parsedJobDescription",
        "job_description", "jobDescription", "job", "data",
    ),
    fields={
        "company_name": _text("company_name", "companyName", "company"),
        "role_title": _text(
            "role_title", "roleTitle", "job_title", "jobTitle", "title", "role"
        ),
        "seniority_level": FieldRule(
            ("seniority_level", "seniorityLevel", "seniority", "level"),
            to_seniority,
            "unknown",
        ),
        "required_skills": _texts(
            "required_skills", "requiredSkills", "must_have_skills", "mustHaveSkills",
            keys=NAME_KEYS,
        ),
        "preferred_skills": _texts("preferred_skills", "preferredSkills", keys=NAME_KEYS),
        "keywords": _texts("keywords", "key_terms", "keyTerms", keys=NAME_KEYS),
        "responsibilities": _texts("responsibilities", "duties"),
        "qualifications": _texts("qualifications", "requirements"),
        "nice_to_haves": _texts(
            "nice_to_haves", "niceToHaves", "nice_to_have", "niceToHave", "bonus"
        ),
        "industry_domain": _optional("industry_domain", "industryDomain", "industry", "domain"),
        "team_size": _optional("team_size", "teamSize"),
        "tech_stack": _texts("tech_stack", "techStack", "technologies", keys=NAME_KEYS),
    },
)

SELECTED_BULLET_SHAPE = Shape(
    name="selected_bullet",
    fields={
        "experience_id": _text("experience_id", "experienceId"),
        "bullet_index": FieldRule(("bullet_index", "bulletIndex", "index"), to_int, 0),
        "original_text": _text("original_text", "originalText", "text", "bullet"),
        "relevance_score": FieldRule(
            ("relevance_score", "relevanceScore", "score"), to_number, 50
        ),
        "matched_keywords": _texts(
            "matched_keywords", "matchedKeywords", "keywords", keys=NAME_KEYS
        ),
    },
)


def _inherit_experience_id(record: dict[str, Any]) -> dict[str, Any]:
    """Bullets that omit their experience ID take the parent's."""
    parent_id = record.get("experience_id", "")
    bullets = record.get("selected_bullets")
    if isinstance(bullets, list):
        for bullet in bullets:
            if isinstance(bullet, dict) and not bullet.get("experience_id"):
                bullet["experience_id"] = parent_id
    return record


SELECTED_EXPERIENCE_SHAPE = Shape(
    name="selected_experience",
    fields={
        "experience_id": _text("experience_id", "experienceId", "id"),
        "include": FieldRule(("include", "included", "selected"), to_bool, True),
        "selected_bullets": FieldRule(
            ("selected_bullets", "selectedBullets", "bullets"),
            list_of(SELECTED_BULLET_SHAPE),
            list,
        ),
    },
    finalize=_inherit_experience_id,
)

RELEVANCE_SELECTION_SHAPE = Shape(
    name="relevance_selection",
    wrappers=(
        "result", "relevance_selection", "relevanceSelection", "selection", "data",
    ),
    fields={
        "proposed_summary": _text("proposed_summary", "proposedSummary", "summary"),
        "selected_experiences": FieldRule(
            ("selected_experiences", "selectedExperiences", "experiences"),
            list_of(SELECTED_EXPERIENCE_SHAPE),
            list,
        ),
        "selected_skills": _texts(
            "selected_skills", "selectedSkills", "skills", keys=NAME_KEYS
        ),
        "selected_projects": _texts(
            "selected_projects", "selectedProjects", "projects", keys=ID_KEYS
        ),
        "selected_certifications": _texts(
            "selected_certifications", "selectedCertifications", "certifications",
            keys=ID_KEYS,
        ),
        "overall_match_score": FieldRule(
            ("overall_match_score", "overallMatchScore", "match_score", "matchScore"),
            to_number,
            50,
        ),
    },
)

CONTACT_SHAPE = Shape(
    name="contact",
    fields={
        "name": FieldRule(("name", "full_name", "fullName"), to_text),
        "email": FieldRule(("email", "email_address", "emailAddress"), to_text),
        "phone": _optional("phone", "phone_number", "phoneNumber"),
        "location": _optional("location", "address"),
        "linkedin": _optional("linkedin", "linkedIn", "linkedin_url", "linkedinUrl"),
        "github": _optional("github", "gitHub", "github_url", "githubUrl"),
        "website": _optional("website", "portfolio", "url"),
    },
)

EXPERIENCE_ITEM_SHAPE = Shape(
    name="experience",
    fields={
        "title": _text("title", "role", "position", "job_title", "jobTitle"),
        "company": _text("company", "organization", "employer", "company_name", "companyName"),
        "location": _optional("location",),
        "start_date": _text("start_date", "startDate", "from", "start"),
        "end_date": FieldRule(("end_date", "endDate", "to", "end"), to_end_date, None),
        "bullets": _texts("bullets", "achievements", "highlights", "responsibilities"),
    },
)

EDUCATION_ITEM_SHAPE = Shape(
    name="education",
    fields={
        "institution": _text("institution", "school", "university"),
        "degree": _text("degree",),
        "field": _text("field", "major", "field_of_study", "fieldOfStudy"),
        "start_date": _text("start_date", "startDate", "from", "start"),
        "end_date": FieldRule(("end_date", "endDate", "to", "end"), to_end_date, None),
        "gpa": _optional("gpa", "GPA"),
        "highlights": _texts("highlights", "achievements", "honors"),
    },
)

PROJECT_ITEM_SHAPE = Shape(
    name="project",
    fields={
        "name": _text("name", "title"),
        "description": _text("description", "summary"),
        "url": _optional("url", "link"),
        "highlights": _texts("highlights", "achievements", "bullets"),
    },
)

CERTIFICATION_ITEM_SHAPE = Shape(
    name="certification",
    fields={
        "name": _text("name", "title"),
        "issuer": _text("issuer", "organization", "issued_by", "issuedBy"),
        "date": _text("date", "issued_date", "issuedDate", "issue_date"),
    },
)

RESUME_DATA_SHAPE = Shape(
    name="resume_data",
    wrappers=("result", "resume_data", "resumeData", "resume", "data"),
    fields={
        "contact": FieldRule(
            ("contact", "contact_info", "contactInfo", "personal_info", "personalInfo"),
            shape_of(CONTACT_SHAPE),
            dict,
        ),
        "summary": _text(
            "summary", "professional_summary", "professionalSummary", "objective"
        ),
        "experience": FieldRule(
            ("experience", "work_experience", "workExperience", "experiences"),
            list_of(EXPERIENCE_ITEM_SHAPE),
            list,
        ),
        "education": FieldRule(("education",), list_of(EDUCATION_ITEM_SHAPE), list),
        "skills": FieldRule(
            ("skills", "technical_skills", "technicalSkills"),
            to_skills_section,
            lambda: {"categories": []},
        ),
        "projects": FieldRule(("projects",), list_of(PROJECT_ITEM_SHAPE), list),
        "certifications": FieldRule(
            ("certifications",), list_of(CERTIFICATION_ITEM_SHAPE), list
        ),
    },
)

COVER_LETTER_SHAPE = Shape(
    name="cover_letter",
    wrappers=("result", "cover_letter", "coverLetter", "letter", "data"),
    fields={
        "opening": _text(
            "opening", "opening_paragraph", "openingParagraph", "intro", "introduction"
        ),
        "body_paragraphs": _texts(
            "body_paragraphs", "bodyParagraphs", "body", "paragraphs"
        ),
        "closing": _text("closing", "closing_paragraph", "closingParagraph", "conclusion"),
        "tone": FieldRule(("tone",), to_tone, "professional"),
    },
)

SHAPES: dict[type[BaseModel], Shape] = {
    ParsedJobDescription: JOB_DESCRIPTION_SHAPE,
    RelevanceSelection: RELEVANCE_SELECTION_SHAPE,
    ResumeData: RESUME_DATA_SHAPE,
    CoverLetterData: COVER_LETTER_SHAPE,
}


# ─── Normalization ───


def coalesce(raw: dict[str, Any], aliases: tuple[str, ...]) -> Any:
    """Return the first alias present with a non-null value, else MISSING."""
    for alias in aliases:
        if raw.get(alias) is not None:
            return raw[alias]
    return MISSING


def unwrap(raw: dict[str, Any], shape: Shape) -> dict[str, Any]:
    """Peel container objects until the shape's own fields show up."""
    for _ in range(MAX_UNWRAP_DEPTH):
        if shape.known_keys.intersection(raw):
            break
        inner = next(
            (raw[key] for key in shape.wrappers if isinstance(raw.get(key), dict)),
            None,
        )
        if inner is None:
            break
        raw = inner
    return raw


def normalize_shape(raw: Any, shape: Shape) -> Any:
    """Map an untyped value onto the field names of ``shape``.

    Non-object values are returned unchanged and left for validation to reject.
    """
    if not isinstance(raw, dict):
        return raw
    raw = unwrap(raw, shape)

    normalized: dict[str, Any] = {}
    for name, rule in shape.fields.items():
        value = coalesce(raw, rule.aliases)
        if value is MISSING:
            if rule.default is MISSING:
                continue
            normalized[name] = rule.default() if callable(rule.default) else rule.default
        else:
            normalized[name] = rule.coerce(value)

    if shape.finalize is not None:
        normalized = shape.finalize(normalized)
    return normalized


def format_field_path(loc: tuple[Any, ...]) -> str:
    """Render a pydantic error location as ``experience[0].title``."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "$"


def validate_model(payload: Any, target: type[ModelT]) -> ModelT:
    """Validate an already-shaped payload, converting errors to ValidationFailed."""
    try:
        return target.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        raise ValidationFailed(
            format_field_path(tuple(first["loc"])),
            f"{first['msg']} ({e.error_count()} error(s) in {target.__name__})",
        ) from e


def normalize(raw: Any, target: type[ModelT]) -> ModelT:
    """Coerce an untrusted JSON value into ``target``.

    Args:
        raw: Decoded JSON produced by the completion service
        target: One of ParsedJobDescription, RelevanceSelection, ResumeData,
            CoverLetterData

    Returns:
        A validated instance of ``target``

    Raises:
        ValidationFailed: If the value is not an object or still violates the
            schema after coercion
    """
    if not isinstance(raw, dict):
        raise ValidationFailed("$", f"expected a JSON object, got {type(raw).__name__}")
    return validate_model(normalize_shape(raw, SHAPES[target]), target)


def load_json_payload(text: str) -> Any:
    """Extract JSON from completion text using multiple strategies.

    Models may wrap JSON in markdown code blocks or add commentary, so this
    tries a direct parse, then a fenced block, then the outermost ``{...}``.

    Raises:
        ValidationFailed: If no valid JSON can be extracted
    """
    # Strategy 1: Direct JSON parse
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Strategy 2: Extract from markdown code block
    code_block_match = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", text, re.DOTALL)
    if code_block_match:
        try:
            return json.loads(code_block_match.group(1))
        except json.JSONDecodeError:
            pass

    # Strategy 3: Find first {...} block (handles commentary before/after)
    json_match = re.search(r"\{.*\}", text, re.DOTALL)
    if json_match:
        try:
            return json.loads(json_match.group())
        except json.JSONDecodeError:
            pass

    raise ValidationFailed(
        "$", f"could not extract valid JSON. Response preview: {text[:200]}"
    )


def parse_completion(text: str, target: type[ModelT]) -> ModelT:
    """Decode completion text and normalize it into ``target``."""
    return normalize(load_json_payload(text), target)
