"""Two-phase generation pipeline with a human review checkpoint.

Start parses the job description and proposes a relevance selection, then
stops in ``reviewing``. Confirm takes the (possibly edited) selection and
writes the resume, scores it, writes the cover letter and persists the record.
Only one run may be in flight at a time.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from functools import lru_cache
from typing import TypeVar

from pydantic import BaseModel

from resu.config import Settings, settings
from resu.exceptions import ConcurrencyRejected, ResuError, ValidationFailed
from resu.schemas.cover_letter import CoverLetterData
from resu.schemas.generation import (
    ConfirmTokenUsage,
    GenerateConfirmResponse,
    GenerateParseResponse,
    GenerationConfig,
    ParseTokenUsage,
)
from resu.schemas.job import ParsedJobDescription
from resu.schemas.profile import PersonalProfile
from resu.schemas.resume import ResumeData
from resu.schemas.selection import RelevanceSelection
from resu.services import prompts
from resu.services.ats_scorer import score_ats
from resu.services.completion import (
    CompletionResult,
    CompletionService,
    ModelTier,
    OllamaCompletionClient,
)
from resu.services.normalizer import parse_completion
from resu.services.resume_store import ResumeStore

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

MIN_JD_LENGTH = 50

PARSE_TEMPERATURE = 0.1
SELECT_TEMPERATURE = 0.3
GENERATE_TEMPERATURE = 0.4
COVER_LETTER_TEMPERATURE = 0.5


class PipelineStage(str, Enum):
    IDLE = "idle"
    PARSING = "parsing"
    SELECTING = "selecting"
    REVIEWING = "reviewing"
    GENERATING = "generating"
    SCORING = "scoring"
    COVER_LETTER = "cover-letter"
    COMPLETE = "complete"
    ERROR = "error"


class GenerationLease:
    """Single-slot lease guarding generation runs.

    Contention is rejected immediately rather than queued.
    """

    def __init__(self):
        self._held = False

    def is_held(self) -> bool:
        return self._held

    @contextmanager
    def hold(self) -> Iterator[None]:
        if self._held:
            raise ConcurrencyRejected(
                "A generation is already in progress. Please wait for it to finish."
            )
        self._held = True
        try:
            yield
        finally:
            self._held = False


class GenerationPipeline:
    """Orchestrates the generation steps around one CompletionService."""

    def __init__(self, completion: CompletionService, config: Settings = settings):
        self.completion = completion
        self.config = config
        self.lease = GenerationLease()
        self.stage = PipelineStage.IDLE

    def is_busy(self) -> bool:
        return self.lease.is_held()

    @contextmanager
    def _step(self, stage: PipelineStage, step: str | None = None) -> Iterator[None]:
        """Enter ``stage``; on failure tag the error with the step and move to error."""
        name = step or stage.value
        self.stage = stage
        logger.info(f"Pipeline step: {name}")
        try:
            yield
        except ResuError as e:
            self.stage = PipelineStage.ERROR
            if e.step is None:
                e.step = name
            logger.error(f"Pipeline failed at {name}: {e}")
            raise
        except Exception as e:
            self.stage = PipelineStage.ERROR
            logger.exception(f"Pipeline failed at {name}")
            raise ResuError(f"{type(e).__name__}: {e}", step=name) from e

    async def _generate(
        self,
        tier: ModelTier,
        system_prompt: str,
        user_message: str,
        target: type[ModelT],
        temperature: float,
    ) -> tuple[ModelT, CompletionResult]:
        result = await self.completion.complete(
            tier,
            system_prompt,
            user_message,
            structured_output=True,
            temperature=temperature,
        )
        logger.info(
            f"{target.__name__}: model={result.model_id} "
            f"tokens={result.total_tokens} cost=${result.cost_estimate:.4f}"
        )
        return parse_completion(result.text, target), result

    async def start(
        self,
        jd_text: str,
        config: GenerationConfig | None,
        profile: PersonalProfile,
    ) -> GenerateParseResponse:
        """Parse the job description and propose a relevance selection.

        Args:
            jd_text: Raw job description (at least 50 characters)
            config: Optional generation options; company/role act as parser hints
            profile: Candidate master profile

        Returns:
            Parsed JD, proposed selection and token usage for the two calls

        Raises:
            ConcurrencyRejected: If another run is in flight
            ValidationFailed: If the job text is too short or output is unusable
            ExternalServiceFailed: If a completion call fails
        """
        with self.lease.hold():
            self.stage = PipelineStage.IDLE
            if len(jd_text.strip()) < MIN_JD_LENGTH:
                raise ValidationFailed(
                    "jd_text", f"must be at least {MIN_JD_LENGTH} characters"
                )

            with self._step(PipelineStage.PARSING):
                parsed_jd, parse_result = await self._generate(
                    "fast",
                    prompts.PARSE_JD_PROMPT,
                    prompts.parse_jd_message(jd_text, config),
                    ParsedJobDescription,
                    PARSE_TEMPERATURE,
                )

            with self._step(PipelineStage.SELECTING):
                selection, select_result = await self._generate(
                    "smart",
                    prompts.SELECT_RELEVANT_PROMPT,
                    prompts.select_relevant_message(profile, parsed_jd, config),
                    RelevanceSelection,
                    SELECT_TEMPERATURE,
                )

            self.stage = PipelineStage.REVIEWING
            logger.info(
                f"Awaiting review: {parsed_jd.role_title} at {parsed_jd.company_name}, "
                f"{len(selection.included_experiences())} experience(s) selected"
            )
            return GenerateParseResponse(
                parsed_jd=parsed_jd,
                relevance_selection=selection,
                token_usage=ParseTokenUsage(
                    parse_tokens=parse_result.total_tokens,
                    select_tokens=select_result.total_tokens,
                    estimated_cost=parse_result.cost_estimate + select_result.cost_estimate,
                ),
            )

    async def confirm(
        self,
        jd_text: str,
        parsed_jd: ParsedJobDescription,
        selection: RelevanceSelection,
        config: GenerationConfig,
        profile: PersonalProfile,
        store: ResumeStore,
    ) -> GenerateConfirmResponse:
        """Write, score and persist the resume for a reviewed selection.

        Nothing is persisted unless every step succeeds.

        Raises:
            ConcurrencyRejected: If another run is in flight
            ValidationFailed: If generator output cannot be validated
            ExternalServiceFailed: If a completion call fails
        """
        with self.lease.hold():
            self.stage = PipelineStage.IDLE

            with self._step(PipelineStage.GENERATING):
                resume_data, generate_result = await self._generate(
                    "smart",
                    prompts.GENERATE_RESUME_PROMPT.format(
                        target_page_length=config.target_page_length, tone=config.tone
                    ),
                    prompts.generate_resume_message(profile, parsed_jd, selection, config),
                    ResumeData,
                    GENERATE_TEMPERATURE,
                )

            with self._step(PipelineStage.SCORING):
                ats_score = score_ats(resume_data, parsed_jd)
                logger.info(
                    f"ATS score {ats_score.score} (keywords {ats_score.keyword_match}, "
                    f"sections {ats_score.section_score}, format {ats_score.format_score})"
                )

            with self._step(PipelineStage.COVER_LETTER):
                cover_letter, cover_result = await self._generate(
                    "smart",
                    prompts.GENERATE_COVER_LETTER_PROMPT.format(tone=config.tone),
                    prompts.cover_letter_message(profile, parsed_jd, selection, config),
                    CoverLetterData,
                    COVER_LETTER_TEMPERATURE,
                )

            token_usage = ConfirmTokenUsage(
                generate_tokens=generate_result.total_tokens,
                cover_letter_tokens=cover_result.total_tokens,
                total_cost=generate_result.cost_estimate + cover_result.cost_estimate,
            )

            with self._step(PipelineStage.COMPLETE, step="persist"):
                resume_id = await store.create(
                    jd_text=jd_text,
                    parsed_jd=parsed_jd,
                    generation_config=config,
                    relevance_selection=selection,
                    resume_data=resume_data,
                    cover_letter=cover_letter,
                    ats_score=ats_score,
                    prompt_version=self.config.prompt_version,
                    token_usage=token_usage,
                )

            logger.info(f"Generation complete: resume {resume_id}")
            return GenerateConfirmResponse(
                id=resume_id,
                resume_data=resume_data,
                cover_letter=cover_letter,
                ats_score=ats_score,
                token_usage=token_usage,
            )


@lru_cache
def get_pipeline() -> GenerationPipeline:
    """Process-wide pipeline backed by the local Ollama server."""
    return GenerationPipeline(OllamaCompletionClient())
