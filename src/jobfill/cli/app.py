from __future__ import annotations

import json
from pathlib import Path

import typer

from jobfill.browser.engine import ApplicationRunner
from jobfill.browser.page import open_page
from jobfill.config import get_settings
from jobfill.core.cache import AnswerCache, ResolutionCache
from jobfill.core.runtime import build_answer_synthesizer, build_resolution_engine
from jobfill.db.init import init_database
from jobfill.db.repositories import Repository
from jobfill.db.session import SessionLocal
from jobfill.db.store import ANSWERS_NAMESPACE, LABEL_MAP_NAMESPACE, SqlKeyValueStore
from jobfill.errors import JobfillError
from jobfill.llm.router import LLMRouter
from jobfill.logging_config import configure_logging

app = typer.Typer(help="jobfill CLI")
profile_app = typer.Typer(help="Manage applicant profiles")
labels_app = typer.Typer(help="Resolve form labels and inspect the label cache")
answers_app = typer.Typer(help="Synthesize and inspect per-job answer sets")
cache_app = typer.Typer(help="Maintain the label and answer caches")

app.add_typer(profile_app, name="profile")
app.add_typer(labels_app, name="labels")
app.add_typer(answers_app, name="answers")
app.add_typer(cache_app, name="cache")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


def _load_profile(repo: Repository, profile_id: int | None):
    profile = repo.load_applicant_profile(profile_id)
    if profile is None:
        if profile_id is None:
            raise typer.BadParameter("no profile found; run `jobfill profile import` first")
        raise typer.BadParameter(f"profile {profile_id} not found")
    return profile


@app.command("init")
def init_cmd() -> None:
    """Initialize database and data directories."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@profile_app.command("import")
def profile_import(file: Path = typer.Option(..., "--file", exists=True, readable=True)) -> None:
    configure_logging()
    ensure_initialized()
    payload = json.loads(file.read_text(encoding="utf-8"))
    items = payload if isinstance(payload, list) else [payload]

    with SessionLocal() as db:
        repo = Repository(db)
        imported = []
        for item in items:
            profile = repo.import_profile(item)
            imported.append({"id": profile.id, "full_name": profile.full_name, "is_default": profile.is_default})
        typer.echo(json.dumps({"imported": imported}, indent=2))


@profile_app.command("list")
def profile_list() -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        profiles = Repository(db).list_profiles()
        typer.echo(
            json.dumps(
                [{"id": item.id, "full_name": item.full_name, "is_default": item.is_default} for item in profiles],
                indent=2,
            )
        )


@profile_app.command("show")
def profile_show(profile_id: int | None = typer.Option(None, "--profile-id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        profile = _load_profile(Repository(db), profile_id)
        typer.echo(json.dumps(profile.model_dump(), indent=2))


@labels_app.command("resolve")
def labels_resolve(labels: list[str] = typer.Argument(..., help="Raw form field labels")) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    with SessionLocal() as db:
        engine = build_resolution_engine(db, settings, LLMRouter(settings))
        resolutions = engine.resolve_labels(labels)
        typer.echo(json.dumps([item.model_dump() for item in resolutions], indent=2))


@labels_app.command("list")
def labels_list(limit: int = typer.Option(50, "--limit")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        cache = ResolutionCache(SqlKeyValueStore(db, LABEL_MAP_NAMESPACE))
        entries = cache.all()[:limit]
        typer.echo(json.dumps([entry.model_dump() for entry in entries], indent=2))


@answers_app.command("synthesize")
def answers_synthesize(
    job_id: str = typer.Option(..., "--job-id"),
    title: str = typer.Option(..., "--title"),
    description: str = typer.Option("", "--description"),
    description_file: Path | None = typer.Option(None, "--description-file", exists=True, readable=True),
    profile_id: int | None = typer.Option(None, "--profile-id"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    if description_file is not None:
        description = description_file.read_text(encoding="utf-8")

    with SessionLocal() as db:
        profile = _load_profile(Repository(db), profile_id)
        synthesizer = build_answer_synthesizer(db, settings, LLMRouter(settings))
        try:
            answer_set = synthesizer.synthesize_answers(job_id, title, description, profile)
        except JobfillError as exc:
            typer.echo(json.dumps({"ok": False, "error": str(exc)}, indent=2))
            raise typer.Exit(code=1) from exc
        typer.echo(json.dumps({"job_id": job_id, **answer_set.model_dump()}, indent=2))


@answers_app.command("show")
def answers_show(job_id: str = typer.Option(..., "--job-id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        answer_set = AnswerCache(SqlKeyValueStore(db, ANSWERS_NAMESPACE)).get(job_id)
        if answer_set is None:
            raise typer.BadParameter(f"no cached answers for job {job_id}")
        typer.echo(json.dumps({"job_id": job_id, **answer_set.model_dump()}, indent=2))


@cache_app.command("clear")
def cache_clear(
    labels: bool = typer.Option(False, "--labels", help="Clear learned label resolutions"),
    answers: bool = typer.Option(False, "--answers", help="Clear cached answer sets"),
    job_id: str | None = typer.Option(None, "--job-id", help="Clear the answer set of one job only"),
) -> None:
    configure_logging()
    ensure_initialized()
    if not (labels or answers or job_id):
        raise typer.BadParameter("pass --labels, --answers or --job-id")

    removed: dict[str, int] = {}
    with SessionLocal() as db:
        if labels:
            removed["labels"] = ResolutionCache(SqlKeyValueStore(db, LABEL_MAP_NAMESPACE)).clear()
        if answers or job_id:
            cache = AnswerCache(SqlKeyValueStore(db, ANSWERS_NAMESPACE))
            removed["answers"] = cache.clear(None if answers else job_id)
    typer.echo(json.dumps({"removed": removed}, indent=2))


@app.command("apply")
def apply_cmd(
    url: str = typer.Option(..., "--url"),
    job_id: str = typer.Option(..., "--job-id"),
    title: str = typer.Option("", "--title"),
    description: str = typer.Option("", "--description"),
    resume: Path | None = typer.Option(None, "--resume", help="Resume file; defaults to the selected variant"),
    profile_id: int | None = typer.Option(None, "--profile-id"),
    submit: bool = typer.Option(False, "--submit"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()

    with SessionLocal() as db:
        profile = _load_profile(Repository(db), profile_id)
        router = LLMRouter(settings)
        synthesizer = build_answer_synthesizer(db, settings, router)
        try:
            answer_set = synthesizer.synthesize_answers(job_id, title, description, profile)
        except JobfillError as exc:
            typer.echo(json.dumps({"ok": False, "error": str(exc)}, indent=2))
            raise typer.Exit(code=1) from exc

        resume_path = resume or settings.resume_dir / answer_set.resume_variant
        runner = ApplicationRunner(build_resolution_engine(db, settings, router), settings)
        with open_page(url, settings) as page:
            result = runner.run(page, answer_set, resume_path, submit=submit)

    typer.echo(json.dumps({"job_id": job_id, **result.model_dump()}, indent=2))
    if not result.success:
        raise typer.Exit(code=1)
