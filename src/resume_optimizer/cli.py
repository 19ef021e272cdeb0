"""CLI interface using typer + rich."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from resume_optimizer.clients.llm_client import ChatCompletionClient
from resume_optimizer.config import load_api_key, load_config
from resume_optimizer.errors import ConfigurationError, MalformedResponse, ResumeOptimizerError
from resume_optimizer.models.request import (
    CustomSectionInput,
    ExperienceTier,
    IdentityOverrides,
    SectionKind,
)
from resume_optimizer.parsers.jd_parser import load_jd_file
from resume_optimizer.parsers.resume_parser import parse_resume
from resume_optimizer.pipeline.orchestrator import ResumeOrchestrator

app = typer.Typer(
    name="resume-optimizer",
    help="LLM-backed resume optimization and section generation",
    no_args_is_help=True,
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_orchestrator(config_path: Path | None, on_phase=None) -> ResumeOrchestrator:
    config = load_config(config_path)
    client = ChatCompletionClient(load_api_key(), config.llm, config.pipeline)
    return ResumeOrchestrator(client, retry_config=config.retry, on_phase=on_phase)


def _parse_sections(values: list[str]) -> list[CustomSectionInput]:
    sections = []
    for value in values:
        title, sep, details = value.partition("=")
        if not sep or not title.strip():
            raise typer.BadParameter(f"Expected TITLE=DETAILS, got {value!r}", param_hint="--section")
        sections.append(CustomSectionInput(title=title.strip(), details=details.strip()))
    return sections


def _report_error(error: ResumeOptimizerError) -> None:
    console.print(f"[red]{error.user_message}[/red]")
    console.print(f"[dim]{type(error).__name__}: {error}[/dim]")
    if isinstance(error, MalformedResponse):
        console.print(Panel(error.raw_text[:2000], title="Raw model reply"))


@app.command()
def optimize(
    resume: Path = typer.Option(..., "--resume", help="Resume file (PDF/DOCX/TXT/MD)"),
    jd: Path = typer.Option(..., "--jd", help="Job description text file"),
    tier: ExperienceTier = typer.Option(ExperienceTier.EXPERIENCED, "--tier", help="Experience tier"),
    name: str = typer.Option(None, "--name", help="Candidate name (used verbatim)"),
    email: str = typer.Option(None, "--email", help="Contact email (used verbatim)"),
    phone: str = typer.Option(None, "--phone", help="Phone number (used verbatim)"),
    linkedin: str = typer.Option(None, "--linkedin", help="LinkedIn URL (used verbatim)"),
    github: str = typer.Option(None, "--github", help="GitHub URL (used verbatim)"),
    target_role: str = typer.Option(None, "--target-role", help="Role the resume targets"),
    section: list[str] = typer.Option([], "--section", help="Extra section as TITLE=DETAILS"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the resume JSON here"),
    config_path: Path = typer.Option(None, "--config", help="Path to config.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Optimize a resume against a job description."""
    _setup_logging(verbose)
    for path, label in ((resume, "Resume"), (jd, "Job description")):
        if not path.exists():
            console.print(f"[red]{label} file not found: {path}[/red]")
            raise typer.Exit(1)

    try:
        resume_text = parse_resume(resume)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1) from e
    jd_text = load_jd_file(jd)
    overrides = IdentityOverrides(
        name=name, email=email, phone=phone, linkedin=linkedin, github=github
    )

    try:
        with console.status("Optimizing resume...") as status:
            orchestrator = _build_orchestrator(
                config_path, on_phase=lambda phase, detail: status.update(detail)
            )
            document = asyncio.run(
                orchestrator.optimize_resume(
                    resume_text,
                    jd_text,
                    tier,
                    overrides=overrides,
                    target_role=target_role,
                    additional_sections=_parse_sections(section),
                )
            )
    except ResumeOptimizerError as e:
        _report_error(e)
        raise typer.Exit(1) from e

    data = json.dumps(document.to_json_dict(), ensure_ascii=False, indent=2)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(data, encoding="utf-8")
        console.print(f"[green]Resume saved: {output}[/green]")
    else:
        console.print_json(data)

    console.print(
        Panel(
            f"Experience: {len(document.work_experience)} | Projects: {len(document.projects)} | "
            f"Skills: {sum(s.count for s in document.skills)} | "
            f"Certifications: {len(document.certifications)}",
            title=f"{document.name or 'Resume'} ({tier.value})",
        )
    )


@app.command()
def generate(
    kind: SectionKind = typer.Argument(help="Section kind to generate"),
    payload: Path = typer.Option(None, "--payload", "-p", help="JSON file with section context"),
    variations: int = typer.Option(None, "--variations", "-n", min=1, help="Number of variations"),
    config_path: Path = typer.Option(None, "--config", help="Path to config.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Generate content for a single resume section."""
    _setup_logging(verbose)
    data: dict = {}
    if payload is not None:
        if not payload.exists():
            console.print(f"[red]Payload file not found: {payload}[/red]")
            raise typer.Exit(1)
        try:
            data = json.loads(payload.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            console.print(f"[red]Payload is not valid JSON: {escape(str(e))}[/red]")
            raise typer.Exit(1) from e
        if not isinstance(data, dict):
            console.print("[red]Payload must be a JSON object[/red]")
            raise typer.Exit(1)

    try:
        with console.status(f"Generating {kind.value}..."):
            orchestrator = _build_orchestrator(config_path)
            result = asyncio.run(orchestrator.generate_section(kind, data, variations))
    except ResumeOptimizerError as e:
        _report_error(e)
        raise typer.Exit(1) from e

    if isinstance(result, str):
        console.print(Panel(result, title=kind.value))
        return
    for i, item in enumerate(result, 1):
        if isinstance(item, list):
            console.print(Panel("\n".join(f"- {b}" for b in item), title=f"Variation {i}"))
        else:
            console.print(f"  {i}. {item}")


@app.command("show-config")
def show_config(
    config_path: Path = typer.Option(None, "--config", help="Path to config.yaml"),
) -> None:
    """Show the effective configuration."""
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    table = Table(title="Configuration")
    table.add_column("Section")
    table.add_column("Key")
    table.add_column("Value")
    for section_name, section in (("llm", config.llm), ("retry", config.retry), ("pipeline", config.pipeline)):
        for key, value in asdict(section).items():
            table.add_row(section_name, key, str(value))
    console.print(table)


if __name__ == "__main__":
    app()
