"""Prompt construction for full-resume optimization and section generation."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from resume_optimizer.models.request import (
    CustomSectionInput,
    ExperienceTier,
    FullOptimizeRequest,
    IdentityOverrides,
    SectionGenerateRequest,
    SectionKind,
)

BULLET_WORD_LIMIT = 20
MAX_BULLETS_PER_ENTRY = 3
KEYWORD_COVERAGE_TARGET = 0.70
DATE_RANGE_FORMAT = "Mon YYYY – Mon YYYY"

WEAK_VERBS = (
    "helped",
    "worked on",
    "assisted",
    "was responsible for",
    "handled",
    "participated in",
    "involved in",
    "tried",
    "did",
    "made",
)

STRONG_VERB_CATEGORIES = {
    "Leadership": ("Led", "Directed", "Spearheaded", "Orchestrated", "Mentored"),
    "Technical": ("Engineered", "Architected", "Developed", "Implemented", "Automated"),
    "Improvement": ("Optimized", "Streamlined", "Accelerated", "Reduced", "Enhanced"),
    "Creation": ("Designed", "Launched", "Built", "Established", "Initiated"),
    "Analysis": ("Analyzed", "Evaluated", "Diagnosed", "Forecasted", "Modeled"),
}

JSON_ONLY_INSTRUCTION = (
    "Respond with ONLY valid JSON. Do not include any prose, explanations, "
    "or markdown outside the JSON."
)

RESUME_JSON_SCHEMA = """\
{
  "name": "string",
  "phone": "string",
  "email": "string",
  "linkedin": "string",
  "github": "string",
  "location": "string",
  "targetRole": "string",
  "summary": "string",
  "careerObjective": "string",
  "education": [
    {"degree": "string", "school": "string", "year": "string", "cgpa": "string", "location": "string"}
  ],
  "workExperience": [
    {"role": "string", "company": "string", "year": "string", "bullets": ["string"]}
  ],
  "projects": [
    {"title": "string", "bullets": ["string"], "githubUrl": "string"}
  ],
  "skills": [
    {"category": "string", "count": 0, "list": ["string"]}
  ],
  "certifications": [
    {"title": "string", "description": "string"}
  ],
  "additionalSections": [
    {"title": "string", "bullets": ["string"]}
  ],
  "achievements": ["string"]
}"""

TIER_INSTRUCTIONS: dict[ExperienceTier, str] = {
    ExperienceTier.EXPERIENCED: """\
CANDIDATE TIER: EXPERIENCED PROFESSIONAL
- Write a "summary" (PROFESSIONAL SUMMARY) of 2-3 sentences highlighting years of experience,
  core expertise and measurable impact. It is REQUIRED.
- Leave "careerObjective" as an empty string.
- Section order: PROFESSIONAL SUMMARY, WORK EXPERIENCE, SKILLS, PROJECTS, CERTIFICATIONS, EDUCATION.
- Emphasize work experience: quantified results, scope, ownership and leadership.
- Keep projects to the 2-3 most relevant to the job description.""",
    ExperienceTier.FRESHER: """\
CANDIDATE TIER: FRESHER (recent graduate)
- Write a "careerObjective" (CAREER OBJECTIVE) of 2 sentences describing the target role and
  the value the candidate brings. It is REQUIRED.
- Leave "summary" as an empty string.
- Section order: CAREER OBJECTIVE, EDUCATION, SKILLS, PROJECTS, WORK EXPERIENCE (internships),
  CERTIFICATIONS.
- Emphasize projects, internships, technical skills and academic results.
- Internships count as work experience; do not invent full-time roles.""",
    ExperienceTier.STUDENT: """\
CANDIDATE TIER: COLLEGE STUDENT
- Write a "careerObjective" (CAREER OBJECTIVE) of 2 sentences focused on learning goals and the
  internship or entry role being sought. It is REQUIRED.
- Leave "summary" as an empty string.
- Section order: CAREER OBJECTIVE, EDUCATION, PROJECTS, SKILLS, ACHIEVEMENTS, CERTIFICATIONS.
- Emphasize coursework, academic projects, CGPA, hackathons and extracurricular achievements.
- Include expected graduation year in the education entry when known.""",
}


def _quality_rules() -> str:
    strong = "\n".join(
        f"  - {category}: {', '.join(verbs)}" for category, verbs in STRONG_VERB_CATEGORIES.items()
    )
    return f"""\
CONTENT QUALITY RULES (apply to every section):
1. Each bullet point must be at most {BULLET_WORD_LIMIT} words.
2. Use no more than {MAX_BULLETS_PER_ENTRY} bullets per work experience or project entry.
3. Cover at least {KEYWORD_COVERAGE_TARGET:.0%} of the relevant keywords from the job description,
   woven naturally into the summary/objective, bullets and skills.
4. Never use these weak verbs: {", ".join(WEAK_VERBS)}.
5. Start every bullet with a strong action verb from one of these categories:
{strong}
6. Quantify results with numbers, percentages or scale wherever the source supports it.
7. Write all section titles in ALL CAPS.
8. Format every date range exactly as "{DATE_RANGE_FORMAT}" (use "Present" for ongoing roles).
9. Do not use unverified subjective adjectives (e.g. "passionate", "hardworking", "excellent",
   "world-class") unless they are backed by a concrete fact.
10. Do not invent employers, degrees, dates or certifications that are not in the source resume."""


def _identity_block(overrides: IdentityOverrides, target_role: str | None) -> str:
    fields = [
        ("name", overrides.name),
        ("email", overrides.email),
        ("phone", overrides.phone),
        ("linkedin", overrides.linkedin),
        ("github", overrides.github),
        ("targetRole", target_role),
    ]
    lines = [
        "CANDIDATE IDENTITY (supplied by the user):",
        "Use each value below VERBATIM in the matching JSON field. If a value is empty, copy it",
        "from the resume only if it is present there, otherwise leave the field as an empty",
        "string. Never fabricate contact details or a target role.",
    ]
    for key, value in fields:
        lines.append(f"- {key}: {(value or '').strip()}")
    return "\n".join(lines)


def _additional_sections_block(sections: list[CustomSectionInput]) -> str:
    if not sections:
        return "None"
    parts = []
    for section in sections:
        parts.append(f"### {section.title}\n{section.details}".rstrip())
    return "\n\n".join(parts)


def build_optimize_prompt(request: FullOptimizeRequest) -> str:
    """Build the instruction text for a full resume optimization."""
    return f"""\
You are an expert resume writer and ATS (Applicant Tracking System) optimization specialist.
Rewrite the candidate's resume so it aligns with the job description, then return it as
structured JSON.

{TIER_INSTRUCTIONS[request.tier]}

{_quality_rules()}

{_identity_block(request.overrides, request.target_role)}

ADDITIONAL SECTIONS:
Turn each user-supplied additional section into an "additionalSections" entry with a title in
ALL CAPS and 2-{MAX_BULLETS_PER_ENTRY} bullets.

OUTPUT JSON SCHEMA (return exactly this structure):
{RESUME_JSON_SCHEMA}

--- RESUME TEXT ---
{request.resume_text}

--- JOB DESCRIPTION ---
{request.job_description}

--- USER TYPE ---
{request.tier.value}

--- ADDITIONAL SECTIONS ---
{_additional_sections_block(request.additional_sections)}

{JSON_ONLY_INSTRUCTION}"""


@dataclass(frozen=True)
class SectionTemplate:
    task: str
    rules: tuple[str, ...]
    item_noun: str  # what a single string in the output holds


SECTION_TEMPLATES: dict[SectionKind, SectionTemplate] = {
    SectionKind.SUMMARY: SectionTemplate(
        task="Write a PROFESSIONAL SUMMARY for an experienced candidate.",
        rules=(
            "2-3 sentences, at most 60 words.",
            "Mention years of experience, core expertise and one measurable impact.",
            "Weave in keywords for the target role.",
        ),
        item_noun="summary paragraph",
    ),
    SectionKind.CAREER_OBJECTIVE: SectionTemplate(
        task="Write a CAREER OBJECTIVE for a student or fresher.",
        rules=(
            "2 sentences, at most 40 words.",
            "State the target role and the value the candidate brings.",
            "Reference relevant education or projects.",
        ),
        item_noun="career objective",
    ),
    SectionKind.WORK_EXPERIENCE_BULLETS: SectionTemplate(
        task="Write achievement-focused bullet points for one work experience entry.",
        rules=(
            f"Exactly {MAX_BULLETS_PER_ENTRY} bullets, each at most {BULLET_WORD_LIMIT} words.",
            "Start each bullet with a strong action verb.",
            "Quantify impact with metrics where the description supports it.",
        ),
        item_noun="bullet point",
    ),
    SectionKind.PROJECT_BULLETS: SectionTemplate(
        task="Write bullet points for one project entry.",
        rules=(
            f"Exactly {MAX_BULLETS_PER_ENTRY} bullets, each at most {BULLET_WORD_LIMIT} words.",
            "Cover what was built, the technologies used and the outcome.",
            "Start each bullet with a strong action verb.",
        ),
        item_noun="bullet point",
    ),
    SectionKind.SKILLS_LIST: SectionTemplate(
        task="Produce a list of skills relevant to the target role.",
        rules=(
            "At most 15 skills.",
            "Each skill is 1-3 words; no sentences.",
            "Prefer concrete tools, languages and frameworks over soft skills.",
        ),
        item_noun="skill",
    ),
    SectionKind.CERTIFICATIONS: SectionTemplate(
        task="Suggest certifications relevant to the target role.",
        rules=(
            "At most 5 certifications.",
            "Use the official certification name, optionally followed by the issuer.",
            "Only include real, widely recognized certifications.",
        ),
        item_noun="certification",
    ),
    SectionKind.ACHIEVEMENTS: SectionTemplate(
        task="Write professional or academic achievements suited to the candidate.",
        rules=(
            f"At most 4 achievements, each at most {BULLET_WORD_LIMIT} words.",
            "Make each achievement specific and quantified.",
            "Do not invent awards the context does not support.",
        ),
        item_noun="achievement",
    ),
    SectionKind.ADDITIONAL_SECTION_BULLETS: SectionTemplate(
        task="Write bullet points for a custom resume section.",
        rules=(
            f"2-4 bullets, each at most {BULLET_WORD_LIMIT} words.",
            "Base every bullet on the provided details.",
            "Start each bullet with a strong action verb.",
        ),
        item_noun="bullet point",
    ),
}

_missing = set(SectionKind) - set(SECTION_TEMPLATES)
if _missing:  # pragma: no cover
    raise RuntimeError(f"No prompt template for section kinds: {sorted(k.value for k in _missing)}")


def _format_payload(payload: dict[str, Any]) -> str:
    if not payload:
        return "(no additional context)"
    lines = []
    for key, value in payload.items():
        if isinstance(value, (dict, list)):
            value = json.dumps(value, ensure_ascii=False)
        lines.append(f"- {key}: {value}")
    return "\n".join(lines)


def _output_instruction(kind: SectionKind, count: int, noun: str) -> str:
    if count > 1:
        if kind.is_scalar:
            return (
                f"Produce {count} stylistically distinct versions (vary tone, structure and emphasis).\n"
                f"Return a JSON array of exactly {count} strings, one {noun} per item."
            )
        return (
            f"Produce {count} stylistically distinct sets (vary tone, structure and emphasis).\n"
            f"Return a JSON array of exactly {count} arrays; each inner array holds strings, "
            f"one {noun} per string."
        )
    if kind.is_scalar:
        return f"Return a single JSON string containing the {noun}."
    return f"Return a JSON array of strings, one {noun} per string."


def build_section_prompt(request: SectionGenerateRequest) -> str:
    """Build the instruction text for a single-section generation request."""
    template = SECTION_TEMPLATES[request.section]
    rules = "\n".join(f"- {rule}" for rule in template.rules)
    output = _output_instruction(request.section, request.variation_count, template.item_noun)
    return f"""\
You are an expert resume writer optimizing content for ATS (Applicant Tracking System) screening.

TASK: {template.task}

RULES:
{rules}
- Never use weak verbs such as: {", ".join(WEAK_VERBS[:5])}.
- Do not use unverified subjective adjectives.

CONTEXT:
{_format_payload(request.payload)}

OUTPUT:
{output}

{JSON_ONLY_INSTRUCTION}"""


def build_prompt(request: FullOptimizeRequest | SectionGenerateRequest) -> str:
    """Build the prompt for any generation request."""
    if isinstance(request, FullOptimizeRequest):
        return build_optimize_prompt(request)
    if isinstance(request, SectionGenerateRequest):
        return build_section_prompt(request)
    raise TypeError(f"Unsupported request type: {type(request).__name__}")
