"""Request models for the two pipeline entry points."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


class ExperienceTier(str, Enum):
    FRESHER = "fresher"
    STUDENT = "student"
    EXPERIENCED = "experienced"

    @property
    def narrative_field(self) -> str:
        """Name of the mandatory narrative field for this tier."""
        if self is ExperienceTier.EXPERIENCED:
            return "summary"
        return "careerObjective"


class SectionKind(str, Enum):
    SUMMARY = "summary"
    CAREER_OBJECTIVE = "careerObjective"
    WORK_EXPERIENCE_BULLETS = "workExperienceBullets"
    PROJECT_BULLETS = "projectBullets"
    SKILLS_LIST = "skillsList"
    CERTIFICATIONS = "certifications"
    ACHIEVEMENTS = "achievements"
    ADDITIONAL_SECTION_BULLETS = "additionalSectionBullets"

    @property
    def is_scalar(self) -> bool:
        """Scalar kinds produce a single string; the rest produce a string list."""
        return self in (SectionKind.SUMMARY, SectionKind.CAREER_OBJECTIVE)


class IdentityOverrides(BaseModel):
    """Contact details supplied by the authenticated caller."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    linkedin: str | None = None
    github: str | None = None

    def supplied(self) -> dict[str, str]:
        """Return only the fields that carry a non-blank value."""
        values = self.model_dump()
        return {k: v.strip() for k, v in values.items() if isinstance(v, str) and v.strip()}


class CustomSectionInput(BaseModel):
    title: str
    details: str = ""


class FullOptimizeRequest(BaseModel):
    kind: Literal["full_optimize"] = "full_optimize"
    resume_text: str
    job_description: str
    tier: ExperienceTier
    overrides: IdentityOverrides = Field(default_factory=IdentityOverrides)
    target_role: str | None = None
    additional_sections: list[CustomSectionInput] = Field(default_factory=list)

    @property
    def input_length(self) -> int:
        return len(self.resume_text) + len(self.job_description)


class SectionGenerateRequest(BaseModel):
    kind: Literal["section_generate"] = "section_generate"
    section: SectionKind
    payload: dict[str, Any] = Field(default_factory=dict)
    variations: int | None = Field(default=None, ge=1)

    @property
    def variation_count(self) -> int:
        return self.variations or 1


GenerationRequest = Annotated[
    Union[FullOptimizeRequest, SectionGenerateRequest],
    Field(discriminator="kind"),
]
