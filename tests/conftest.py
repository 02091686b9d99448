"""Shared fixtures: sample profile and artifacts, a scripted completion fake,
and a throwaway SQLite database per test."""

import asyncio
import json
from contextlib import asynccontextmanager

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from resu.database import build_engine, init_db
from resu.exceptions import ExternalServiceFailed
from resu.schemas.job import ParsedJobDescription
from resu.schemas.profile import PersonalProfile
from resu.schemas.resume import ResumeData
from resu.services.completion import CompletionResult
from resu.services.resume_store import ResumeStore

JD_TEXT = (
    "Acme Corp is hiring a Senior Backend Engineer to build Python services on "
    "PostgreSQL and Docker. You will own APIs end to end and mentor engineers."
)

PROFILE = {
    "contact": {"name": "Jane Doe", "email": "jane@example.com", "location": "Berlin"},
    "summary": "Backend engineer focused on reliable data services.",
    "experience": [
        {
            "id": "exp-globex",
            "title": "Backend Engineer",
            "company": "Globex",
            "start_date": "2021-03",
            "end_date": None,
            "bullets": [
                {"text": "Built Python APIs serving 2M requests/day", "tags": ["python"]},
                {"text": "Cut SQL query latency by 40%", "tags": ["sql"]},
                {"text": "Organised the team offsite", "tags": []},
            ],
        },
        {
            "id": "exp-initech",
            "title": "Software Engineer",
            "company": "Initech",
            "start_date": "2018-06",
            "end_date": "2021-02",
            "bullets": [{"text": "Maintained TPS report pipeline", "tags": []}],
        },
    ],
    "skills": [
        {"name": "Python", "proficiency": "expert", "category": "backend"},
        {"name": "SQL", "proficiency": "advanced", "category": "backend"},
        {"name": "Docker", "proficiency": "intermediate", "category": "devops"},
    ],
    "education": [
        {
            "id": "edu-tum",
            "institution": "TU Munich",
            "degree": "BSc",
            "field": "Computer Science",
            "start_date": "2014",
            "end_date": "2018",
        }
    ],
    "projects": [
        {"id": "proj-cli", "name": "pgdump-cli", "description": "Backup CLI for Postgres"}
    ],
    "certifications": [
        {"id": "cert-cka", "name": "CKA", "issuer": "CNCF", "date": "2022"}
    ],
}

PARSED_JD = {
    "company_name": "Acme Corp",
    "role_title": "Senior Backend Engineer",
    "seniority_level": "senior",
    "required_skills": ["Python", "SQL"],
    "preferred_skills": ["Docker"],
    "keywords": ["APIs"],
    "responsibilities": ["Own APIs end to end"],
    "tech_stack": ["PostgreSQL"],
}

SELECTION = {
    "proposed_summary": "Senior backend engineer shipping Python APIs at scale.",
    "selected_experiences": [
        {
            "experience_id": "exp-globex",
            "include": True,
            "selected_bullets": [
                {
                    "bullet_index": 0,
                    "original_text": "Built Python APIs serving 2M requests/day",
                    "relevance_score": 95,
                    "matched_keywords": ["Python", "APIs"],
                },
                {
                    "bullet_index": 1,
                    "original_text": "Cut SQL query latency by 40%",
                    "relevance_score": 80,
                    "matched_keywords": ["SQL"],
                },
            ],
        },
        {"experience_id": "exp-initech", "include": False, "selected_bullets": []},
    ],
    "selected_skills": ["Python", "SQL"],
    "selected_projects": ["proj-cli"],
    "selected_certifications": [],
    "overall_match_score": 82,
}

RESUME_DATA = {
    "contact": {"name": "Jane Doe", "email": "jane@example.com"},
    "summary": "Senior backend engineer shipping Python APIs on PostgreSQL.",
    "experience": [
        {
            "title": "Backend Engineer",
            "company": "Globex",
            "start_date": "2021-03",
            "end_date": None,
            "bullets": [
                "Built Python APIs serving 2M requests/day",
                "Cut SQL query latency by 40% on PostgreSQL",
            ],
        }
    ],
    "education": [
        {
            "institution": "TU Munich",
            "degree": "BSc",
            "field": "Computer Science",
            "start_date": "2014",
            "end_date": "2018",
        }
    ],
    "skills": {"categories": [{"name": "Backend", "skills": ["Python", "SQL", "Docker"]}]},
    "projects": [],
    "certifications": [],
}

COVER_LETTER = {
    "opening": "I am excited to apply for the Senior Backend Engineer role at Acme Corp.",
    "body_paragraphs": ["At Globex I built Python APIs serving 2M requests a day."],
    "closing": "I would welcome the chance to talk.",
    "tone": "professional",
}


class FakeCompletion:
    """Scripted CompletionService.

    Each call pops the next scripted item: a string is returned as the
    completion text, an exception is raised. When ``gate`` is set, every call
    waits on it first.
    """

    def __init__(self, *responses, tokens: int = 10, cost: float = 0.0):
        self.responses = list(responses)
        self.calls: list[dict] = []
        self.tokens = tokens
        self.cost = cost
        self.gate: asyncio.Event | None = None

    async def complete(
        self,
        tier,
        system_prompt,
        user_message,
        structured_output=False,
        temperature=None,
    ) -> CompletionResult:
        self.calls.append({
            "tier": tier,
            "system_prompt": system_prompt,
            "user_message": user_message,
            "structured_output": structured_output,
            "temperature": temperature,
        })
        if self.gate is not None:
            await self.gate.wait()
        if not self.responses:
            raise ExternalServiceFailed("No scripted response left")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return CompletionResult(
            text=item,
            model_id=f"fake-{tier}",
            prompt_tokens=self.tokens,
            completion_tokens=self.tokens,
            cost_estimate=self.cost,
        )


@asynccontextmanager
async def open_sessions(database_url: str):
    """Fresh schema on ``database_url``; yields a session factory and disposes after."""
    engine = build_engine(database_url, poolclass=NullPool)
    await init_db(engine)
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


@asynccontextmanager
async def open_store(database_url: str):
    """Yields a ResumeStore on a fresh schema."""
    async with open_sessions(database_url) as session_factory:
        async with session_factory() as session:
            yield ResumeStore(session)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def profile() -> PersonalProfile:
    return PersonalProfile.model_validate(PROFILE)


@pytest.fixture
def parsed_jd() -> ParsedJobDescription:
    return ParsedJobDescription.model_validate(PARSED_JD)


@pytest.fixture
def resume_data() -> ResumeData:
    return ResumeData.model_validate(RESUME_DATA)


def scripted_run() -> FakeCompletion:
    """Fake answering parse, select, generate and cover letter in order."""
    return FakeCompletion(
        json.dumps(PARSED_JD),
        json.dumps({"result": SELECTION}),
        json.dumps({"resumeData": RESUME_DATA}),
        "Here is the letter:\n```json\n" + json.dumps(COVER_LETTER) + "\n```",
    )
