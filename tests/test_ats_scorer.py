from resu.schemas.job import ParsedJobDescription
from resu.schemas.resume import ResumeData
from resu.services.ats_scorer import jd_keywords, round_half_up, score_ats


def make_resume(**overrides) -> ResumeData:
    data = {
        "contact": {"name": "Jane Doe", "email": "jane@example.com"},
        "summary": "Engineer working with python and sql every day.",
        "experience": [
            {
                "title": "Engineer",
                "company": "Globex",
                "start_date": "2021",
                "bullets": ["Shipped features", "Fixed bugs", "Wrote docs"],
            }
        ],
        "education": [
            {"institution": "TU", "degree": "BSc", "field": "CS", "start_date": "2014"}
        ],
        "skills": {"categories": [{"name": "Core", "skills": ["Go"]}]},
    }
    data.update(overrides)
    return ResumeData.model_validate(data)


def make_jd(**fields) -> ParsedJobDescription:
    return ParsedJobDescription(company_name="Acme", role_title="Engineer", **fields)


def test_round_half_up():
    assert round_half_up(66.5) == 67
    assert round_half_up(2.5) == 3
    assert round_half_up(66.4) == 66


def test_missing_required_keyword_is_critical():
    result = score_ats(make_resume(), make_jd(required_skills=["Python", "SQL", "Docker"]))
    assert result.keyword_match == 67
    keyword_hints = [s for s in result.suggestions if s.type == "keyword"]
    assert len(keyword_hints) == 1
    assert keyword_hints[0].severity == "critical"
    assert "docker" in keyword_hints[0].message


def test_missing_optional_keyword_is_warning():
    result = score_ats(make_resume(), make_jd(keywords=["python", "sql", "docker"]))
    assert result.keyword_match == 67
    keyword_hints = [s for s in result.suggestions if s.type == "keyword"]
    assert len(keyword_hints) == 1
    assert keyword_hints[0].severity == "warning"
    assert "docker" in keyword_hints[0].message


def test_missing_keywords_listed_up_to_five():
    missing = ["rust", "kafka", "spark", "flink", "scala", "haskell"]
    result = score_ats(make_resume(), make_jd(preferred_skills=missing))
    assert result.keyword_match == 0
    message = result.suggestions[0].message
    assert "scala" in message
    assert "haskell" not in message


def test_no_keywords_scores_full_match():
    result = score_ats(make_resume(), make_jd())
    assert result.keyword_match == 100
    assert not [s for s in result.suggestions if s.type == "keyword"]


def test_jd_keywords_dedupe_case_insensitively():
    jd = make_jd(required_skills=["Python", " SQL "], keywords=["python", ""], tech_stack=["sql"])
    assert jd_keywords(jd) == ["python", "sql"]


def test_missing_experience_and_skills_halves_section_score():
    result = score_ats(make_resume(experience=[], skills={"categories": []}), make_jd())
    assert result.section_score == 50
    section_hints = [s for s in result.suggestions if s.type == "section"]
    assert len(section_hints) == 2
    assert all(s.severity == "critical" for s in section_hints)


def test_format_penalties():
    experience = [
        {"title": "Intern", "company": "Initech", "start_date": "", "bullets": ["One"]},
        {
            "title": "Engineer",
            "company": "Globex",
            "start_date": "2021",
            "bullets": [f"Bullet {i}" for i in range(12)],
        },
    ]
    result = score_ats(make_resume(experience=experience), make_jd())
    # -10 sparse role, -5 long role, -10 length (13 bullets ~ 3 pages), -5 missing date
    assert result.format_score == 70
    types = [s.type for s in result.suggestions]
    assert types == ["density", "density", "length", "format"]


def test_suggestions_ordered_keyword_section_format():
    resume = make_resume(
        summary="",
        experience=[{"title": "Engineer", "company": "Globex", "start_date": "2021", "bullets": ["x"]}],
    )
    result = score_ats(resume, make_jd(required_skills=["docker"]))
    assert [s.type for s in result.suggestions] == ["keyword", "section", "density"]


def test_composite_weights(resume_data, parsed_jd):
    result = score_ats(resume_data, parsed_jd)
    assert (result.keyword_match, result.section_score, result.format_score) == (100, 100, 100)
    assert result.score == 100

    sparse = score_ats(make_resume(experience=[], skills={"categories": []}), make_jd())
    # 100 * 0.5 + 50 * 0.3 + 100 * 0.2
    assert sparse.score == 85


def test_scoring_is_pure(resume_data, parsed_jd):
    before = resume_data.model_dump()
    first = score_ats(resume_data, parsed_jd)
    second = score_ats(resume_data, parsed_jd)
    assert first == second
    assert resume_data.model_dump() == before


def test_whitespace_summary_counts_as_present():
    result = score_ats(make_resume(summary="   "), make_jd())
    assert result.section_score == 100
    assert not [s for s in result.suggestions if s.type == "section"]
