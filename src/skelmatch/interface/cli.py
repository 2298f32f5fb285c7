from __future__ import annotations

# ruff: noqa: E402, B008

"""Thin CLI that delegates to use-cases.

Commands:
- bank build/import/export/count: manage the sentence bank
- match / rank / match-text / style: structural matching against the bank or a sample
- submit / status / worker / tick: chunked batch jobs
"""

import json
import logging
import sys
import time
from pathlib import Path

import click
import typer

from skelmatch.config import configure_app as cfg
from skelmatch.core.settings import get_settings
from skelmatch.domain.matching import ScoredEntry
from skelmatch.exceptions import SkelmatchError, ValidationError
from skelmatch.logging_setup import setup_logging

app = typer.Typer(add_completion=False, help="Structural sentence matching and batch rewriting.")
bank_app = typer.Typer(add_completion=False, help="Sentence bank maintenance.")
app.add_typer(bank_app, name="bank")


def _read_text(source: Path) -> str:
    if str(source) == "-":
        return sys.stdin.read()
    try:
        return source.read_text(encoding="utf-8")
    except OSError as e:
        raise ValidationError(f"Cannot read {source}: {e}") from e


def _level_or_default(level: str | None) -> str:
    return level or get_settings().matching.default_level


def _scored_payload(m: ScoredEntry) -> dict[str, object]:
    return {"rank": m.rank, "score": round(m.score, 2), **m.entry.to_record()}


def _echo_scored(m: ScoredEntry) -> None:
    e = m.entry
    typer.echo(f"[{m.rank}] score={m.score:.2f} | {e.original}")
    typer.echo(f"     {e.skeleton}")


# ---- bank ----------------------------------------------------------------


@bank_app.command("build")
def bank_build_cmd(
    source: Path = typer.Argument(..., help="Text file to fingerprint ('-' for stdin)"),
    level: str | None = typer.Option(None, "--level", "-l", help="Transform level"),
    owner: str | None = typer.Option(None, "--owner", help="Scope the new patterns"),
    out: Path | None = typer.Option(None, "--out", help="Also write the JSONL here"),
) -> None:
    report = cfg.get_build_bank_use_case().execute(
        _read_text(source), _level_or_default(level), owner=owner
    )
    if out is not None:
        out.write_text(report.jsonl + "\n", encoding="utf-8")
    typer.echo(
        f"Added {report.added} pattern(s) ({report.skipped_duplicates} duplicate, "
        f"{report.failed_sentences} failed). Bank size: {report.bank_size}."
    )


@bank_app.command("import")
def bank_import_cmd(
    source: Path = typer.Argument(..., help="JSONL or TXT bank file ('-' for stdin)"),
    owner: str | None = typer.Option(None, "--owner"),
) -> None:
    report = cfg.get_import_bank_use_case().execute(_read_text(source), owner=owner)
    typer.echo(
        f"Imported {report.imported} entries ({report.format}). Bank size: {report.bank_size}."
    )
    for err in report.errors:
        typer.secho(f"  skipped: {err}", fg=typer.colors.YELLOW)


@bank_app.command("export")
def bank_export_cmd(
    fmt: str = typer.Option("jsonl", "--format", "-f", help="jsonl | txt"),
    owner: str | None = typer.Option(None, "--owner"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
) -> None:
    content = cfg.get_export_bank_use_case().execute(fmt, owner=owner)
    if out is None:
        typer.echo(content)
    else:
        out.write_text(content + "\n", encoding="utf-8")
        typer.echo(f"Wrote {out}")


@bank_app.command("count")
def bank_count_cmd(owner: str | None = typer.Option(None, "--owner")) -> None:
    bank, _jobs = cfg.get_stores()
    typer.echo(str(bank.count(owner)))


# ---- matching ------------------------------------------------------------


@app.command("match")
def match_cmd(
    sentence: str = typer.Argument(..., help="Sentence to match"),
    level: str | None = typer.Option(None, "--level", "-l"),
    owner: str | None = typer.Option(None, "--owner"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    result = cfg.get_match_use_case().execute(sentence, _level_or_default(level), owner=owner)
    if as_json:
        payload = {
            "skeleton": result.fingerprint.skeleton,
            "match": _scored_payload(result.best) if result.best else None,
        }
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return
    typer.echo(f"skeleton: {result.fingerprint.skeleton}")
    if result.best is None:
        typer.echo("No match.")
        return
    _echo_scored(result.best)


@app.command("rank")
def rank_cmd(
    sentence: str = typer.Argument(..., help="Sentence to rank the bank against"),
    top_n: int | None = typer.Option(None, "--top-n", "-n", help="Number of results"),
    level: str | None = typer.Option(None, "--level", "-l"),
    owner: str | None = typer.Option(None, "--owner"),
    as_json: bool = typer.Option(False, "--json"),
) -> None:
    result = cfg.get_rank_use_case(top_n).execute(sentence, _level_or_default(level), owner=owner)
    if as_json:
        typer.echo(
            json.dumps([_scored_payload(m) for m in result.matches], ensure_ascii=False, indent=2)
        )
        return
    if not result.matches:
        typer.echo("No results.")
        return
    for m in result.matches:
        _echo_scored(m)


@app.command("match-text")
def match_text_cmd(
    source: Path = typer.Argument(..., help="Text file ('-' for stdin)"),
    level: str | None = typer.Option(None, "--level", "-l"),
    owner: str | None = typer.Option(None, "--owner"),
) -> None:
    report = cfg.get_match_text_use_case().execute(
        _read_text(source), _level_or_default(level), owner=owner
    )
    for i, r in enumerate(report.results, 1):
        if r.match is None:
            reason = f" ({r.error})" if r.error else ""
            typer.echo(f"{i}. {r.sentence}\n   -> no match{reason}")
        else:
            typer.echo(
                f"{i}. {r.sentence}\n   -> {r.match.entry.original} (score {r.match.score:.2f})"
            )
    typer.echo(f"Matched {report.matched}/{report.total} (bank size {report.bank_size}).")


@app.command("style")
def style_cmd(
    target: Path = typer.Argument(..., help="Text to restyle"),
    sample: Path = typer.Argument(..., help="Style sample"),
    level: str | None = typer.Option(None, "--level", "-l"),
) -> None:
    selections = cfg.get_style_use_case().execute(
        _read_text(target), _read_text(sample), _level_or_default(level)
    )
    for i, s in enumerate(selections, 1):
        pattern = s.pattern.entry.skeleton if s.pattern else "(none)"
        typer.echo(f"{i}. {s.sentence}\n   pattern: {pattern}")


# ---- batch jobs ----------------------------------------------------------


def _parse_sections(value: str | None) -> list[int] | None:
    if not value:
        return None
    try:
        return [int(p) for p in value.replace(" ", "").split(",") if p]
    except ValueError as e:
        raise ValidationError(f"Invalid section list {value!r}") from e


@app.command("submit")
def submit_cmd(
    source: Path = typer.Argument(..., help="Text file ('-' for stdin)"),
    level: str | None = typer.Option(None, "--level", "-l"),
    kind: str = typer.Option("rewrite", "--kind", "-k", help="rewrite | bank-build"),
    section_words: int | None = typer.Option(None, "--section-words", help="Target words per section"),
    break_seconds: float | None = typer.Option(None, "--break-seconds", help="Pause between sections"),
    sections: str | None = typer.Option(None, "--sections", help="Subset, e.g. 1,3,4"),
    owner: str | None = typer.Option(None, "--owner"),
) -> None:
    job = cfg.get_submit_use_case().execute(
        _read_text(source),
        _level_or_default(level),
        kind=kind,
        section_words=section_words,
        break_seconds=break_seconds,
        sections=_parse_sections(sections),
        owner=owner,
    )
    typer.echo(f"Job {job.id} submitted: {job.total_sections} section(s), {job.kind.value}.")


@app.command("status")
def status_cmd(
    job_id: int | None = typer.Argument(None, help="Job id (omit to list jobs)"),
    show_output: bool = typer.Option(False, "--output", help="Print completed output"),
) -> None:
    uc = cfg.get_progress_use_case()
    if job_id is None:
        jobs = uc.list_jobs()
        if not jobs:
            typer.echo("No jobs.")
            return
        for j in jobs:
            typer.echo(
                f"{j.id}\t{j.kind.value}\t{j.status.value}\t"
                f"{j.completed_sections}+{j.failed_sections}/{j.total_sections}"
            )
        return
    progress = uc.execute(job_id)
    j = progress.job
    typer.echo(
        f"Job {j.id} [{j.kind.value}, {j.level.value}] {j.status.value} "
        f"{progress.percent_complete:.1f}% ({j.completed_sections} ok, "
        f"{j.failed_sections} failed, {j.total_sections} total)"
    )
    if j.next_process_time is not None:
        typer.echo(f"Next section due at {j.next_process_time.isoformat()}")
    for s in progress.sections:
        line = f"  section {s.index + 1}: {s.status.value} ({s.word_count} words)"
        if s.error_message:
            line += f" - {s.error_message}"
        typer.echo(line)
    if show_output:
        typer.echo(progress.output_text)


@app.command("tick")
def tick_cmd() -> None:
    advanced = cfg.get_scheduler().tick()
    typer.echo("Advanced one step." if advanced else "Nothing to do.")


@app.command("worker")
def worker_cmd() -> None:
    scheduler = cfg.get_scheduler()
    scheduler.start()
    typer.echo("Worker running. Press Ctrl+C to stop.")
    try:
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        typer.echo("Stopping worker...")
    finally:
        scheduler.stop(wait=True)


def main(argv: list[str] | None = None) -> int:
    setup_logging(logging.INFO)
    try:
        rc = app(args=argv, standalone_mode=False)
        return rc if isinstance(rc, int) else 0
    except ValidationError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        return 2
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.exceptions.Abort:
        return 1
    except SkelmatchError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        return 1
    except Exception as e:  # noqa: BLE001
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
