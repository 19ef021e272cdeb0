"""Main pipeline orchestrator - wires prompt, transport, extraction and normalization."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable

from resume_optimizer.clients.llm_client import ChatCompletionClient
from resume_optimizer.clients.retry import RetryPolicy
from resume_optimizer.config import RetryConfig
from resume_optimizer.errors import MalformedResponse
from resume_optimizer.models.request import (
    CustomSectionInput,
    ExperienceTier,
    FullOptimizeRequest,
    IdentityOverrides,
    SectionGenerateRequest,
    SectionKind,
)
from resume_optimizer.models.resume import ResumeDocument, ResumeOrigin
from resume_optimizer.pipeline.normalizer import normalize
from resume_optimizer.pipeline.prompt_builder import build_prompt
from resume_optimizer.pipeline.section_output import (
    SectionOutput,
    ShapeMismatch,
    fallback_section_output,
    shape_section_output,
)
from resume_optimizer.utils.json_parser import extract_json
from resume_optimizer.utils.sanitizer import sanitize

logger = logging.getLogger(__name__)


class ResumeOrchestrator:
    """Runs the optimize and generate pipelines against a chat-completion client.

    Each call builds its own RetryPolicy, so concurrent calls share no retry
    state. Any failure propagates as a typed ResumeOptimizerError.
    """

    def __init__(
        self,
        client: ChatCompletionClient,
        *,
        retry_config: RetryConfig | None = None,
        model: str | None = None,
        on_phase: Callable[[str, str], None] | None = None,
    ):
        self.client = client
        self.retry_config = retry_config or RetryConfig()
        self.model = model
        self.on_phase = on_phase

    def _notify(self, phase: str, detail: str = "") -> None:
        if self.on_phase:
            self.on_phase(phase, detail)

    def _policy(self) -> RetryPolicy:
        return RetryPolicy.from_config(self.retry_config)

    async def optimize(self, request: FullOptimizeRequest) -> ResumeDocument:
        """Optimize a full resume against a job description."""
        start = time.monotonic()
        self.client.check_input_size(request.input_length)

        request = request.model_copy(
            update={
                "resume_text": sanitize(request.resume_text),
                "job_description": sanitize(request.job_description),
            }
        )
        self._notify("prompt", f"Building {request.tier.value} optimization prompt")
        prompt = build_prompt(request)

        self._notify("request", "Waiting for the model")
        reply = await self.client.send(
            prompt, self._policy(), model=self.model, input_length=request.input_length
        )

        self._notify("parse", "Parsing model output")
        try:
            parsed = extract_json(reply.text)
        except MalformedResponse:
            logger.error("Malformed resume JSON from model: %r", reply.text[:500])
            raise

        resume = normalize(
            parsed,
            request.overrides,
            tier=request.tier,
            target_role=request.target_role,
            origin=ResumeOrigin.JD_OPTIMIZED,
        )
        elapsed = time.monotonic() - start
        logger.info(
            "Optimized resume: %d experience, %d projects in %.1fs",
            len(resume.work_experience),
            len(resume.projects),
            elapsed,
        )
        self._notify("done", f"Done in {elapsed:.1f}s")
        return resume

    async def generate(self, request: SectionGenerateRequest) -> SectionOutput:
        """Generate content for one section, optionally as several variations."""
        payload_text = json.dumps(request.payload, ensure_ascii=False, default=str)
        self.client.check_input_size(len(payload_text))

        self._notify("prompt", f"Building {request.section.value} prompt")
        prompt = build_prompt(request)

        self._notify("request", "Waiting for the model")
        reply = await self.client.send(
            prompt, self._policy(), model=self.model, input_length=len(payload_text)
        )

        # Plain-text replies may hold bracketed tokens; those go to line splitting
        try:
            parsed = extract_json(reply.text, strict=True)
        except MalformedResponse as e:
            result = fallback_section_output(request.section, request.variations, reply.text)
            if not result:
                logger.error("Section reply is neither JSON nor usable text: %r", reply.text[:500])
                raise
            logger.warning(
                "Section %s reply was not JSON (%s); used line-splitting fallback",
                request.section.value,
                e.reason,
            )
            return result

        try:
            return shape_section_output(request.section, request.variations, parsed)
        except ShapeMismatch as e:
            logger.error("Section %s reply has unexpected shape: %s", request.section.value, e)
            raise MalformedResponse(reply.text, str(e)) from e

    async def optimize_resume(
        self,
        resume_text: str,
        job_description: str,
        tier: ExperienceTier | str,
        *,
        overrides: IdentityOverrides | None = None,
        target_role: str | None = None,
        additional_sections: list[CustomSectionInput] | None = None,
    ) -> ResumeDocument:
        request = FullOptimizeRequest(
            resume_text=resume_text,
            job_description=job_description,
            tier=ExperienceTier(tier),
            overrides=overrides or IdentityOverrides(),
            target_role=target_role,
            additional_sections=additional_sections or [],
        )
        return await self.optimize(request)

    async def generate_section(
        self,
        kind: SectionKind | str,
        payload: dict | None = None,
        variations: int | None = None,
    ) -> SectionOutput:
        request = SectionGenerateRequest(
            section=SectionKind(kind),
            payload=payload or {},
            variations=variations,
        )
        return await self.generate(request)
