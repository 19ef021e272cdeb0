"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from resume_optimizer.clients.llm_client import ChatCompletionClient, ModelReply
from resume_optimizer.config import RetryConfig
from resume_optimizer.models.request import IdentityOverrides
from resume_optimizer.pipeline.orchestrator import ResumeOrchestrator


@pytest.fixture
def sample_jd_text() -> str:
    return """Backend Engineer (3-5 years)

Responsibilities:
- Build and operate Python backend services handling high traffic
- Design RESTful APIs and data models
- Own CI/CD and observability for the backend

Requirements:
- 3+ years of Python, backend development with Django or FastAPI
- PostgreSQL, Redis
- Docker, AWS
"""


@pytest.fixture
def sample_resume_text() -> str:
    return """Jane Doe
jane.doe@example.com | +1 555 123 4567 | https://linkedin.com/in/janedoe

Work Experience
- Acme Corp (Mar 2021 - Present) - Backend Developer
  - Built Django REST APIs serving 1M requests/day
  - Cut query latency 40% through PostgreSQL indexing

Education
- B.Sc. Computer Science, State University (2015 - 2019)

Skills: Python, Django, PostgreSQL, Redis, Docker, AWS
"""


@pytest.fixture
def sample_resume_json() -> dict:
    return {
        "name": "Jane Doe",
        "phone": "+1 555 123 4567",
        "email": "jane.doe@example.com",
        "linkedin": "https://linkedin.com/in/janedoe",
        "github": "",
        "location": "Austin, TX",
        "targetRole": "Backend Engineer",
        "summary": "Backend developer with 4 years building Python services at scale.",
        "careerObjective": "",
        "education": [
            {
                "degree": "B.Sc. Computer Science",
                "school": "State University",
                "year": "2015 – 2019",
                "cgpa": "",
                "location": "",
            }
        ],
        "workExperience": [
            {
                "role": "Backend Developer",
                "company": "Acme Corp",
                "year": "Mar 2021 – Present",
                "bullets": [
                    "Engineered Django REST APIs serving 1M requests per day",
                    "Optimized PostgreSQL indexing, cutting query latency 40%",
                    "Automated Docker deployments to AWS ECS",
                ],
            }
        ],
        "projects": [
            {
                "title": "Rate Limiter",
                "bullets": ["Built a Redis-backed rate limiter in Python"],
                "githubUrl": "https://github.com/janedoe/limiter",
            }
        ],
        "skills": [
            {"category": "Languages", "count": 1, "list": ["Python", "SQL"]},
            {"category": "Infrastructure", "count": 3, "list": ["Docker", "AWS", "Redis"]},
        ],
        "certifications": ["AWS Certified Developer"],
        "additionalSections": [],
        "achievements": [],
    }


@pytest.fixture
def no_wait_retry() -> RetryConfig:
    return RetryConfig(max_attempts=3, initial_delay=0.0, multiplier=2.0)


@pytest.fixture
def overrides() -> IdentityOverrides:
    return IdentityOverrides(name="Jane Doe", email="a@b.com")


@pytest.fixture
def mock_llm_client() -> ChatCompletionClient:
    """Create a mock chat-completion client."""
    client = AsyncMock(spec=ChatCompletionClient)
    client.send = AsyncMock(
        return_value=ModelReply(text="{}", model="test-model", input_tokens=100, output_tokens=50)
    )
    client.check_input_size = MagicMock(return_value=None)
    return client


@pytest.fixture
def orchestrator(mock_llm_client, no_wait_retry) -> ResumeOrchestrator:
    return ResumeOrchestrator(mock_llm_client, retry_config=no_wait_retry)
