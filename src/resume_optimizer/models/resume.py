"""Pydantic models for the canonical structured resume."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ResumeOrigin(str, Enum):
    JD_OPTIMIZED = "jd_optimized"
    GUIDED = "guided"


class _ResumeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class EducationEntry(_ResumeModel):
    degree: str = ""
    school: str = ""
    year: str = ""
    cgpa: str = ""
    location: str = ""


class WorkExperienceEntry(_ResumeModel):
    role: str
    company: str
    year: str
    bullets: list[str] = Field(default_factory=list)


class ProjectEntry(_ResumeModel):
    title: str
    bullets: list[str] = Field(default_factory=list)
    github_url: str = Field(default="", alias="githubUrl")


class SkillCategory(_ResumeModel):
    category: str
    count: int = 0  # always len(items) after normalization
    items: list[str] = Field(default_factory=list, alias="list")


class Certification(_ResumeModel):
    title: str = ""
    description: str = ""


class AdditionalSection(_ResumeModel):
    title: str
    bullets: list[str] = Field(default_factory=list)


class ResumeDocument(_ResumeModel):
    name: str = ""
    phone: str = ""
    email: str = ""
    linkedin: str = ""
    github: str = ""
    location: str = ""
    target_role: str = Field(default="", alias="targetRole")
    summary: str = ""
    career_objective: str = Field(default="", alias="careerObjective")
    education: list[EducationEntry] = Field(default_factory=list)
    work_experience: list[WorkExperienceEntry] = Field(default_factory=list, alias="workExperience")
    projects: list[ProjectEntry] = Field(default_factory=list)
    skills: list[SkillCategory] = Field(default_factory=list)
    certifications: list[Certification] = Field(default_factory=list)
    additional_sections: list[AdditionalSection] = Field(
        default_factory=list, alias="additionalSections"
    )
    achievements: list[str] = Field(default_factory=list)
    origin: ResumeOrigin = ResumeOrigin.JD_OPTIMIZED

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys used by the model and the UI."""
        return self.model_dump(mode="json", by_alias=True)
