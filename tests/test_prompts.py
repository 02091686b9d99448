import json

from conftest import SELECTION
from resu.schemas.generation import GenerationConfig
from resu.schemas.selection import RelevanceSelection
from resu.services.prompts import cover_letter_message, generate_resume_message


def selection_with(*extra_experiences, first=()) -> RelevanceSelection:
    data = json.loads(json.dumps(SELECTION))
    data["selected_experiences"] = [
        *first, *data["selected_experiences"], *extra_experiences
    ]
    return RelevanceSelection.model_validate(data)


def test_excluded_duplicate_does_not_shadow_included_bullets(profile, parsed_jd):
    selection = selection_with(
        first=[{"experience_id": "exp-globex", "include": False, "selected_bullets": []}]
    )
    context = json.loads(
        generate_resume_message(profile, parsed_jd, selection, GenerationConfig())
    )
    assert len(context["selected_experiences"]) == 1
    assert context["selected_experiences"][0]["selected_bullets"] == [
        "Built Python APIs serving 2M requests/day",
        "Cut SQL query latency by 40%",
    ]


def test_unknown_experience_skipped_by_both_builders(profile, parsed_jd, caplog):
    selection = selection_with(
        {
            "experience_id": "exp-deleted",
            "include": True,
            "selected_bullets": [
                {"bullet_index": 0, "original_text": "Ghost bullet", "relevance_score": 50}
            ],
        }
    )
    config = GenerationConfig()
    resume_context = json.loads(
        generate_resume_message(profile, parsed_jd, selection, config)
    )
    letter_context = json.loads(cover_letter_message(profile, parsed_jd, selection, config))

    assert [e["company"] for e in resume_context["selected_experiences"]] == ["Globex"]
    assert [e["company"] for e in letter_context["selected_experiences"]] == ["Globex"]
    assert "exp-deleted not in profile" in caplog.text


def test_cover_letter_limits_bullets_and_skills(profile, parsed_jd):
    data = json.loads(json.dumps(SELECTION))
    bullets = data["selected_experiences"][0]["selected_bullets"]
    data["selected_experiences"][0]["selected_bullets"] = bullets * 3
    data["selected_skills"] = [f"skill-{i}" for i in range(10)]
    selection = RelevanceSelection.model_validate(data)

    context = json.loads(
        cover_letter_message(profile, parsed_jd, selection, GenerationConfig())
    )
    assert len(context["selected_experiences"][0]["top_bullets"]) == 3
    assert context["key_skills"] == [f"skill-{i}" for i in range(8)]
