"""Data models for the resume optimization pipeline."""

from resume_optimizer.models.request import (
    CustomSectionInput,
    ExperienceTier,
    FullOptimizeRequest,
    GenerationRequest,
    IdentityOverrides,
    SectionGenerateRequest,
    SectionKind,
)
from resume_optimizer.models.resume import (
    AdditionalSection,
    Certification,
    EducationEntry,
    ProjectEntry,
    ResumeDocument,
    ResumeOrigin,
    SkillCategory,
    WorkExperienceEntry,
)

__all__ = [
    "AdditionalSection",
    "Certification",
    "CustomSectionInput",
    "EducationEntry",
    "ExperienceTier",
    "FullOptimizeRequest",
    "GenerationRequest",
    "IdentityOverrides",
    "ProjectEntry",
    "ResumeDocument",
    "ResumeOrigin",
    "SectionGenerateRequest",
    "SectionKind",
    "SkillCategory",
    "WorkExperienceEntry",
]
