from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from jobfill.cli.app import app
from jobfill.llm.router import TEXT_SHAPE, WHY_FIT_SHAPE, LLMRouter

runner = CliRunner()

PROFILE = {
    "full_name": "Jordan Avery",
    "email": "jordan.avery@example.com",
    "requires_sponsorship": "No",
    "is_default": True,
    "resume_variants": ["resume_backend.pdf", "resume_cloud.pdf"],
}


def _import_profile(tmp_path: Path) -> None:
    path = tmp_path / "profile.json"
    path.write_text(json.dumps(PROFILE), encoding="utf-8")
    result = runner.invoke(app, ["profile", "import", "--file", str(path)])
    assert result.exit_code == 0, result.output


def test_init_reports_tables() -> None:
    result = runner.invoke(app, ["init"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["ok"] is True
    assert "cache_entries" in payload["tables"]
    assert "profiles" in payload["tables"]


def test_profile_import_and_show(tmp_path: Path) -> None:
    _import_profile(tmp_path)

    result = runner.invoke(app, ["profile", "show"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["email"] == "jordan.avery@example.com"

    listed = runner.invoke(app, ["profile", "list"])
    assert listed.exit_code == 0, listed.output
    assert [item["full_name"] for item in json.loads(listed.stdout)] == ["Jordan Avery"]


def test_labels_resolve_degrades_without_llm_and_lists_cache() -> None:
    result = runner.invoke(app, ["labels", "resolve", "Email Address", "Shoe size"])

    assert result.exit_code == 0, result.output
    resolutions = json.loads(result.stdout)
    assert [item["key"] for item in resolutions] == ["email", "unknown"]

    listed = runner.invoke(app, ["labels", "list"])
    assert [entry["label"] for entry in json.loads(listed.stdout)] == ["Email Address"]


def _fake_generate(self, prompt: str, shape: str = TEXT_SHAPE):
    if shape == WHY_FIT_SHAPE:
        return {"why_fit": "Years of C# services work fit this team."}
    return "resume_backend.pdf"


def test_answers_synthesize_show_and_clear(tmp_path: Path, monkeypatch) -> None:
    _import_profile(tmp_path)
    monkeypatch.setattr(LLMRouter, "generate", _fake_generate)

    result = runner.invoke(
        app, ["answers", "synthesize", "--job-id", "job-1", "--title", "Engineer", "--description", "C#"]
    )
    assert result.exit_code == 0, result.output
    synthesized = json.loads(result.stdout)
    assert synthesized["answers"]["full_name"] == "Jordan Avery"
    assert synthesized["answers"]["salary_expectation"] == "Open"
    assert synthesized["answers"]["why_fit"] == "Years of C# services work fit this team."
    assert synthesized["resume_variant"] == "resume_backend.pdf"

    shown = runner.invoke(app, ["answers", "show", "--job-id", "job-1"])
    assert json.loads(shown.stdout) == synthesized

    cleared = runner.invoke(app, ["cache", "clear", "--job-id", "job-1"])
    assert json.loads(cleared.stdout) == {"removed": {"answers": 1}}
    assert runner.invoke(app, ["answers", "show", "--job-id", "job-1"]).exit_code != 0


def test_answers_synthesized_without_llm_are_not_cached(tmp_path: Path) -> None:
    _import_profile(tmp_path)

    result = runner.invoke(app, ["answers", "synthesize", "--job-id", "job-2", "--title", "Engineer"])

    assert result.exit_code == 0, result.output
    synthesized = json.loads(result.stdout)
    assert "why_fit" not in synthesized["answers"]
    assert synthesized["resume_variant"] == "resume_backend.pdf"
    assert runner.invoke(app, ["answers", "show", "--job-id", "job-2"]).exit_code != 0


def test_answers_synthesize_requires_a_profile() -> None:
    result = runner.invoke(app, ["answers", "synthesize", "--job-id", "job-1", "--title", "Engineer"])

    assert result.exit_code != 0


def test_cache_clear_requires_a_target() -> None:
    result = runner.invoke(app, ["cache", "clear"])

    assert result.exit_code != 0
