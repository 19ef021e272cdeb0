"""Clean, repair and validate parsed model output into a ResumeDocument."""

from __future__ import annotations

import logging
import re
from typing import Any

from resume_optimizer.errors import SchemaViolation
from resume_optimizer.models.request import ExperienceTier, IdentityOverrides
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
from resume_optimizer.utils.sanitizer import sanitize

logger = logging.getLogger(__name__)

PLACEHOLDERS = frozenset({"n/a", "not specified", "none"})

CERT_TITLE_KEYS = ("title", "name", "certificate", "issuer", "provider")
CERT_DESCRIPTION_KEYS = ("description", "issuer", "provider")

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}")
_PHONE_RE = re.compile(r"\+?\(?\d[\d\s().-]{5,}\d")
_LINKEDIN_RE = re.compile(r"(?:https?://)?(?:[\w-]+\.)?linkedin\.com/[^\s,;|]+", re.IGNORECASE)
_GITHUB_RE = re.compile(r"(?:https?://)?(?:www\.)?github\.com/[^\s,;|]+", re.IGNORECASE)


def clean_value(value: Any) -> Any:
    """Recursively sanitize strings and blank out placeholder tokens."""
    if isinstance(value, str):
        text = sanitize(value).strip()
        return "" if text.lower() in PLACEHOLDERS else text
    if isinstance(value, list):
        return [clean_value(v) for v in value]
    if isinstance(value, dict):
        return {k: clean_value(v) for k, v in value.items()}
    return value


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [s for s in (_text(v) for v in value) if s]


def _dicts(value: Any) -> list[dict]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


def _first_present(entry: dict, keys: tuple[str, ...], skip: str | None = None) -> tuple[str, str | None]:
    for key in keys:
        if key == skip:
            continue
        text = _text(entry.get(key))
        if text:
            return text, key
    return "", None


def coerce_certification(entry: Any) -> Certification | None:
    """Coerce a bare string or loosely keyed object into a Certification."""
    if isinstance(entry, str):
        return Certification(title=entry) if entry else None
    if not isinstance(entry, dict):
        return None
    title, title_key = _first_present(entry, CERT_TITLE_KEYS)
    description, _ = _first_present(entry, CERT_DESCRIPTION_KEYS, skip=title_key)
    if not title and not description:
        return None
    return Certification(title=title, description=description)


def _education(data: dict) -> list[EducationEntry]:
    entries = []
    for e in _dicts(data.get("education")):
        entry = EducationEntry(
            degree=_text(e.get("degree")),
            school=_text(e.get("school") or e.get("institution")),
            year=_text(e.get("year")),
            cgpa=_text(e.get("cgpa") or e.get("gpa")),
            location=_text(e.get("location")),
        )
        if entry.degree or entry.school:
            entries.append(entry)
    return entries


def _work_experience(data: dict) -> list[WorkExperienceEntry]:
    entries = []
    for e in _dicts(data.get("workExperience")):
        role = _text(e.get("role"))
        company = _text(e.get("company"))
        year = _text(e.get("year"))
        bullets = _string_list(e.get("bullets"))
        if role and company and year and bullets:
            entries.append(WorkExperienceEntry(role=role, company=company, year=year, bullets=bullets))
        else:
            logger.debug("Dropping incomplete work experience entry: %r", e)
    return entries


def _projects(data: dict) -> list[ProjectEntry]:
    entries = []
    for p in _dicts(data.get("projects")):
        title = _text(p.get("title"))
        bullets = _string_list(p.get("bullets"))
        if title and bullets:
            entries.append(
                ProjectEntry(title=title, bullets=bullets, github_url=_text(p.get("githubUrl")))
            )
        else:
            logger.debug("Dropping incomplete project entry: %r", p)
    return entries


def _skills(data: dict) -> list[SkillCategory]:
    categories = []
    for s in _dicts(data.get("skills")):
        items = _string_list(s.get("list"))
        category = _text(s.get("category"))
        if not items:
            continue
        categories.append(SkillCategory(category=category, count=len(items), items=items))
    return categories


def _certifications(data: dict) -> list[Certification]:
    raw = data.get("certifications")
    if not isinstance(raw, list):
        return []
    return [c for c in (coerce_certification(e) for e in raw) if c is not None]


def _additional_sections(data: dict) -> list[AdditionalSection]:
    sections = []
    for s in _dicts(data.get("additionalSections")):
        title = _text(s.get("title"))
        bullets = _string_list(s.get("bullets"))
        if title and bullets:
            sections.append(AdditionalSection(title=title, bullets=bullets))
    return sections


def heal_email(value: str) -> str:
    match = _EMAIL_RE.search(value)
    return match.group(0) if match else ""


def heal_phone(value: str) -> str:
    match = _PHONE_RE.search(value)
    if not match:
        return ""
    phone = match.group(0).strip()
    digits = sum(ch.isdigit() for ch in phone)
    return phone if 7 <= digits <= 15 else ""


def heal_linkedin(value: str) -> str:
    match = _LINKEDIN_RE.search(value)
    return match.group(0).rstrip(".") if match else ""


def heal_github(value: str) -> str:
    match = _GITHUB_RE.search(value)
    return match.group(0).rstrip(".") if match else ""


_HEALERS = {
    "email": heal_email,
    "phone": heal_phone,
    "linkedin": heal_linkedin,
    "github": heal_github,
}


def _identity(data: dict, overrides: IdentityOverrides) -> dict[str, str]:
    supplied = overrides.supplied()
    identity = {}
    for field_name in ("name", "email", "phone", "linkedin", "github"):
        if field_name in supplied:
            identity[field_name] = supplied[field_name]
            continue
        value = _text(data.get(field_name))
        healer = _HEALERS.get(field_name)
        identity[field_name] = healer(value) if healer and value else value
    return identity


def normalize(
    parsed: Any,
    overrides: IdentityOverrides | None = None,
    *,
    tier: ExperienceTier | None = None,
    target_role: str | None = None,
    origin: ResumeOrigin = ResumeOrigin.JD_OPTIMIZED,
) -> ResumeDocument:
    """Turn untrusted parsed model output into a validated ResumeDocument.

    Strings are sanitized and placeholder tokens blanked, certifications are
    coerced to ``{title, description}``, incomplete experience, project and
    custom-section entries are dropped, skill counts are recomputed and
    caller-supplied identity fields override whatever the model produced.
    When ``tier`` is given only the narrative field it selects is kept.

    Raises:
        SchemaViolation: if ``parsed`` is not a JSON object.
    """
    if not isinstance(parsed, dict):
        raise SchemaViolation(
            f"Expected a JSON object for the resume, got {type(parsed).__name__}"
        )

    data = clean_value(parsed)
    identity = _identity(data, overrides or IdentityOverrides())

    summary = _text(data.get("summary"))
    career_objective = _text(data.get("careerObjective"))
    if tier is not None:
        if tier.narrative_field == "summary":
            career_objective = ""
        else:
            summary = ""

    role = (target_role or "").strip() or _text(data.get("targetRole"))

    return ResumeDocument(
        **identity,
        location=_text(data.get("location")),
        target_role=role,
        summary=summary,
        career_objective=career_objective,
        education=_education(data),
        work_experience=_work_experience(data),
        projects=_projects(data),
        skills=_skills(data),
        certifications=_certifications(data),
        additional_sections=_additional_sections(data),
        achievements=_string_list(data.get("achievements")),
        origin=origin,
    )
