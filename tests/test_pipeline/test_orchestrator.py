"""Tests for pipeline orchestrator."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from resume_optimizer.clients.llm_client import ChatCompletionClient, ModelReply
from resume_optimizer.config import LLMConfig, PipelineConfig, RetryConfig
from resume_optimizer.errors import (
    InputTooLarge,
    MalformedResponse,
    RetriesExhausted,
    SchemaViolation,
    Unauthorized,
)
from resume_optimizer.models.request import (
    ExperienceTier,
    FullOptimizeRequest,
    IdentityOverrides,
    SectionKind,
)
from resume_optimizer.models.resume import ResumeDocument, ResumeOrigin
from resume_optimizer.pipeline.orchestrator import ResumeOrchestrator


def _reply(text: str) -> ModelReply:
    return ModelReply(text=text, model="test-model", input_tokens=100, output_tokens=50)


def _fenced(data) -> str:
    return f"Here is your optimized resume:\n```json\n{json.dumps(data)}\n```\nLet me know!"


@pytest.fixture
def happy_path_json() -> dict:
    return {
        "name": "Jane Doe",
        "email": "jane.doe@example.com",
        "summary": "Backend engineer with 4 years of Python and backend experience.",
        "careerObjective": "",
        "workExperience": [
            {
                "role": "Backend Developer",
                "company": "Acme Corp",
                "year": "Mar 2021 – Present",
                "bullets": [
                    "Engineered Python backend APIs serving 1M requests per day",
                    "Optimized PostgreSQL queries, reducing latency by 40%",
                    "Automated backend deployments with Docker and AWS",
                ],
            }
        ],
        "skills": [{"category": "Backend", "count": 10, "list": ["Python", "Django"]}],
    }


class TestOptimizeResume:
    async def test_happy_path(
        self, orchestrator, mock_llm_client, happy_path_json, sample_resume_text
    ):
        mock_llm_client.send.return_value = _reply(_fenced(happy_path_json))

        resume = await orchestrator.optimize_resume(
            sample_resume_text,
            "Looking for Python, backend engineers",
            ExperienceTier.EXPERIENCED,
        )

        assert isinstance(resume, ResumeDocument)
        assert resume.summary
        assert resume.career_objective == ""
        assert len(resume.work_experience) == 1
        assert len(resume.work_experience[0].bullets) == 3
        assert resume.skills[0].count == 2
        assert resume.origin == ResumeOrigin.JD_OPTIMIZED
        mock_llm_client.send.assert_awaited_once()

    async def test_prompt_carries_inputs(self, orchestrator, mock_llm_client, happy_path_json):
        mock_llm_client.send.return_value = _reply(json.dumps(happy_path_json))
        await orchestrator.optimize_resume("My resume text", "Python, backend", "fresher")

        prompt = mock_llm_client.send.call_args.args[0]
        assert "My resume text" in prompt
        assert "Python, backend" in prompt
        assert "CANDIDATE TIER: FRESHER" in prompt
        assert mock_llm_client.send.call_args.kwargs["input_length"] == len("My resume text") + len(
            "Python, backend"
        )

    async def test_inputs_sanitized_before_prompt(self, orchestrator, mock_llm_client, happy_path_json):
        mock_llm_client.send.return_value = _reply(json.dumps(happy_path_json))
        await orchestrator.optimize_resume("Built APIs // Line 7", "JD /* note */ text", "experienced")

        prompt = mock_llm_client.send.call_args.args[0]
        assert "Line 7" not in prompt
        assert "/* note */" not in prompt

    async def test_identity_overrides_win(self, orchestrator, mock_llm_client, happy_path_json):
        happy_path_json["email"] = "wrong@x.com"
        mock_llm_client.send.return_value = _reply(_fenced(happy_path_json))

        resume = await orchestrator.optimize_resume(
            "resume",
            "jd",
            ExperienceTier.EXPERIENCED,
            overrides=IdentityOverrides(email="a@b.com"),
        )
        assert resume.email == "a@b.com"

    async def test_malformed_reply_rejected_with_raw_text(self, orchestrator, mock_llm_client):
        prose = "Sure! I rewrote your resume to be much stronger and more focused."
        mock_llm_client.send.return_value = _reply(prose)

        with pytest.raises(MalformedResponse) as exc_info:
            await orchestrator.optimize_resume("resume", "jd", ExperienceTier.EXPERIENCED)
        assert exc_info.value.raw_text == prose

    async def test_truncated_reply_rejected(self, orchestrator, mock_llm_client):
        truncated = (
            '{"name": "Jane", "summary": "Backend engineer", "workExperience": '
            '[{"role": "Dev", "company": "Acme", "year": "2020", "bullets": ["Built X"]}], '
            '"skills": [{"category": "Lang", "count": 1, "list": ["Python"]}], '
            '"achievements": ["Won hackathon"'
        )
        mock_llm_client.send.return_value = _reply(truncated)

        with pytest.raises(MalformedResponse) as exc_info:
            await orchestrator.optimize_resume("resume", "jd", ExperienceTier.EXPERIENCED)
        assert exc_info.value.raw_text == truncated

    async def test_non_object_reply_is_schema_violation(self, orchestrator, mock_llm_client):
        mock_llm_client.send.return_value = _reply('["not", "a", "resume"]')
        with pytest.raises(SchemaViolation):
            await orchestrator.optimize_resume("resume", "jd", ExperienceTier.STUDENT)

    async def test_input_too_large_short_circuits(self, mock_llm_client, no_wait_retry):
        mock_llm_client.check_input_size.side_effect = InputTooLarge(60_000, 50_000)
        orchestrator = ResumeOrchestrator(mock_llm_client, retry_config=no_wait_retry)

        with pytest.raises(InputTooLarge):
            await orchestrator.optimize_resume("x" * 30_000, "y" * 30_000, ExperienceTier.EXPERIENCED)
        mock_llm_client.send.assert_not_awaited()

    async def test_transport_errors_propagate(self, orchestrator, mock_llm_client):
        mock_llm_client.send.side_effect = Unauthorized("bad key", status_code=401)
        with pytest.raises(Unauthorized):
            await orchestrator.optimize_resume("resume", "jd", ExperienceTier.EXPERIENCED)

    async def test_each_call_gets_fresh_policy(self, orchestrator, mock_llm_client, happy_path_json):
        mock_llm_client.send.return_value = _reply(json.dumps(happy_path_json))
        await orchestrator.optimize_resume("a", "b", "experienced")
        await orchestrator.optimize_resume("c", "d", "experienced")

        first = mock_llm_client.send.call_args_list[0].args[1]
        second = mock_llm_client.send.call_args_list[1].args[1]
        assert first == second
        assert first is not second

    async def test_on_phase_callback(self, mock_llm_client, no_wait_retry, happy_path_json):
        phases = []
        orchestrator = ResumeOrchestrator(
            mock_llm_client,
            retry_config=no_wait_retry,
            on_phase=lambda phase, detail: phases.append(phase),
        )
        mock_llm_client.send.return_value = _reply(json.dumps(happy_path_json))
        await orchestrator.optimize(
            FullOptimizeRequest(resume_text="r", job_description="j", tier=ExperienceTier.EXPERIENCED)
        )
        assert phases == ["prompt", "request", "parse", "done"]


class TestGenerateSection:
    async def test_bullets_from_json(self, orchestrator, mock_llm_client):
        mock_llm_client.send.return_value = _reply('["Built X", "Shipped Y", "Led Z"]')
        result = await orchestrator.generate_section(
            SectionKind.WORK_EXPERIENCE_BULLETS, {"role": "Dev", "company": "Acme"}
        )
        assert result == ["Built X", "Shipped Y", "Led Z"]

    async def test_line_split_fallback(self, orchestrator, mock_llm_client):
        mock_llm_client.send.return_value = _reply("• First\n• Second\n\n")
        result = await orchestrator.generate_section("workExperienceBullets", {"role": "Dev"})
        assert result == ["First", "Second"]

    async def test_bracketed_token_in_text_uses_line_split(self, orchestrator, mock_llm_client):
        mock_llm_client.send.return_value = _reply(
            "• Reduced API latency by 40% across [3] services\n• Mentored four engineers\n"
        )
        result = await orchestrator.generate_section(
            SectionKind.WORK_EXPERIENCE_BULLETS, {"role": "Dev", "company": "Acme"}
        )
        assert result == ["Reduced API latency by 40% across [3] services", "Mentored four engineers"]

    async def test_scalar_single(self, orchestrator, mock_llm_client):
        mock_llm_client.send.return_value = _reply('"Backend engineer with 5 years of Python."')
        result = await orchestrator.generate_section(SectionKind.SUMMARY, {"targetRole": "SRE"})
        assert result == "Backend engineer with 5 years of Python."

    async def test_scalar_variations(self, orchestrator, mock_llm_client):
        mock_llm_client.send.return_value = _reply(_fenced(["One", "Two", "Three"]))
        result = await orchestrator.generate_section(SectionKind.CAREER_OBJECTIVE, {}, variations=3)
        assert result == ["One", "Two", "Three"]

    async def test_list_variations(self, orchestrator, mock_llm_client):
        mock_llm_client.send.return_value = _reply(
            json.dumps({"variations": [["AWS SAA", "CKA"], ["GCP ACE"], ["Terraform Associate"]]})
        )
        result = await orchestrator.generate_section(SectionKind.CERTIFICATIONS, {}, variations=3)
        assert result == [["AWS SAA", "CKA"], ["GCP ACE"], ["Terraform Associate"]]

    async def test_fallback_for_scalar(self, orchestrator, mock_llm_client):
        mock_llm_client.send.return_value = _reply("Driven engineer\nfocused on reliability.")
        result = await orchestrator.generate_section(SectionKind.SUMMARY)
        assert result == "Driven engineer focused on reliability."

    async def test_empty_fallback_raises(self, orchestrator, mock_llm_client):
        mock_llm_client.send.return_value = _reply("```\n\n```")
        with pytest.raises(MalformedResponse):
            await orchestrator.generate_section(SectionKind.PROJECT_BULLETS)

    async def test_shape_mismatch_is_malformed(self, orchestrator, mock_llm_client):
        mock_llm_client.send.return_value = _reply('{"a": 1, "b": 2}')
        with pytest.raises(MalformedResponse):
            await orchestrator.generate_section(SectionKind.SUMMARY)

    async def test_payload_size_checked(self, mock_llm_client, no_wait_retry):
        mock_llm_client.check_input_size.side_effect = InputTooLarge(10, 5)
        orchestrator = ResumeOrchestrator(mock_llm_client, retry_config=no_wait_retry)
        with pytest.raises(InputTooLarge):
            await orchestrator.generate_section(SectionKind.SKILLS_LIST, {"x": "long"})
        mock_llm_client.send.assert_not_awaited()

    async def test_invalid_kind_rejected(self, orchestrator):
        with pytest.raises(ValueError):
            await orchestrator.generate_section("coverLetter")


class TestEndToEnd:
    """Run the orchestrator against a mocked HTTP endpoint."""

    @staticmethod
    def _orchestrator(handler, max_input_chars=50_000) -> ResumeOrchestrator:
        client = ChatCompletionClient(
            "test-key",
            LLMConfig(),
            PipelineConfig(max_input_chars=max_input_chars),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        return ResumeOrchestrator(
            client, retry_config=RetryConfig(max_attempts=3, initial_delay=0.0)
        )

    async def test_full_optimize_over_http(self, happy_path_json):
        def handler(request):
            content = _fenced(happy_path_json)
            return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

        resume = await self._orchestrator(handler).optimize_resume(
            "resume", "Python, backend", ExperienceTier.EXPERIENCED
        )
        assert len(resume.work_experience) == 1

    async def test_503_exhausts_through_orchestrator(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503, text="unavailable")

        with pytest.raises(RetriesExhausted):
            await self._orchestrator(handler).generate_section(SectionKind.ACHIEVEMENTS)
        assert len(calls) == 3

    async def test_ceiling_plus_one_never_calls_network(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"choices": [{"message": {"content": "{}"}}]})

        with pytest.raises(InputTooLarge):
            await self._orchestrator(handler, max_input_chars=10).optimize_resume(
                "x" * 6, "y" * 5, ExperienceTier.EXPERIENCED
            )
        assert calls == []

    async def test_concurrent_requests_are_independent(self, happy_path_json):
        def handler(request):
            prompt = json.loads(request.content)["messages"][0]["content"]
            if "TASK:" in prompt:
                content = '["Built A", "Built B"]'
            else:
                content = json.dumps(happy_path_json)
            return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

        orchestrator = self._orchestrator(handler)
        resume, bullets = await asyncio.gather(
            orchestrator.optimize_resume("r", "j", ExperienceTier.EXPERIENCED),
            orchestrator.generate_section(SectionKind.PROJECT_BULLETS, {"title": "X"}),
        )
        assert resume.name == "Jane Doe"
        assert bullets == ["Built A", "Built B"]
