# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Developer CLI for session logs.

Commands
--------
  agentlens ingest FILE [--adapter NAME] [--merge-session ID] [--no-dedupe]
  agentlens sessions
  agentlens audit SESSION_ID [--json]

The sessions directory comes from ``--sessions-dir`` or
AGENTLENS_STORAGE_SESSIONS_DIR. Library errors are reported on stderr
with exit code 1.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from agentlens.audit.config import ConfigAuditPipeline
from agentlens.audit.enums import EnumRiskLevel
from agentlens.ingest.adapters.registry import AUTO_ADAPTER, default_registry
from agentlens.ingest.service import IngestService, ModelIngestResult
from agentlens.lib.errors import AgentLensError
from agentlens.review.models import ModelAuditResult
from agentlens.review.view import run_audit
from agentlens.storage.config import ConfigSessionStorage
from agentlens.storage.session_log import SessionLogStore

console = Console()

_LEVEL_COLORS: dict[str, str] = {
    EnumRiskLevel.HIGH: "red",
    EnumRiskLevel.MEDIUM: "yellow",
    EnumRiskLevel.LOW: "green",
}


def _level_badge(level: str) -> str:
    color = _LEVEL_COLORS.get(level, "white")
    return f"[{color}]{level.upper()}[/{color}]"


def _store(ctx: click.Context) -> SessionLogStore:
    store: SessionLogStore = ctx.obj["log_store"]
    return store


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render_ingest_result(result: ModelIngestResult) -> None:
    console.rule(f"Ingested {result.session_id}")
    console.print(f"  [bold]adapter:[/bold]     {result.adapter}")
    strategy = result.merge_strategy.value
    if result.merge_confidence is not None:
        strategy += f" ({result.merge_confidence:.3f})"
    console.print(f"  [bold]strategy:[/bold]    {strategy}")
    console.print(f"  [bold]inserted:[/bold]    {result.inserted}")
    console.print(f"  [bold]duplicates:[/bold]  {result.skipped_duplicates}")
    console.print(f"  [bold]write mode:[/bold]  {result.write_mode.value}")
    console.print(f"  [bold]log:[/bold]         {result.session_path}")
    console.print(f"  [bold]raw:[/bold]         {result.raw_path}")


def _render_audit(result: ModelAuditResult) -> None:
    meta = result.normalized.metadata
    view = result.reviewer

    console.rule(f"Session {meta.session_id}")
    console.print(f"  [bold]goal:[/bold]        {view.goal}")
    console.print(f"  [bold]outcome:[/bold]     {view.outcome.value}")
    if meta.repo:
        console.print(f"  [bold]repo:[/bold]        {meta.repo} ({meta.branch or '-'})")
    coverage = view.verification_summary
    console.print(
        f"  [bold]verification:[/bold] {coverage.coverage.value} "
        f"(pass {coverage.passed}, fail {coverage.failed}, unknown {coverage.unknown})"
    )
    console.print(f"  [bold]confidence:[/bold]  {view.confidence_estimate:.2f}")
    if view.token_summary:
        console.print(f"  [bold]tokens:[/bold]      {view.token_summary.total_tokens:g}")
    console.print()

    if view.intent_summaries:
        table = Table(title="Intents")
        table.add_column("ID", style="dim")
        table.add_column("Title", style="cyan")
        table.add_column("Status")
        table.add_column("Files", justify="right")
        table.add_column("Risk")
        for intent in view.intent_summaries:
            table.add_row(
                intent.intent_id,
                intent.title,
                intent.status.value,
                str(intent.files_touched),
                ", ".join(_level_badge(level) for level in intent.risks) or "-",
            )
        console.print(table)

    if view.high_risk_items:
        console.rule("High risks", style="dim")
        for item in view.high_risk_items:
            scope = item.intent_id or "session"
            console.print(f"  {_level_badge(item.level)} {scope}  {item.score}")
            for reason in item.reasons:
                console.print(f"    - {reason}")

    if view.hotspots:
        table = Table(title="Hotspots")
        table.add_column("File", style="cyan")
        table.add_column("Score", justify="right")
        for hotspot in view.hotspots:
            table.add_row(hotspot.file, f"{hotspot.score:.3f}")
        console.print(table)

    if result.normalized.revisions:
        console.rule("Revisions", style="dim")
        for revision in result.normalized.revisions:
            console.print(f"  {revision.type.value}  {revision.explanation}")

    if view.recommended_actions:
        console.rule("Recommended actions", style="dim")
        for suggestion in view.recommended_actions:
            console.print(
                f"  {_level_badge(suggestion.priority)} ({suggestion.category.value}) "
                f"{suggestion.title}"
            )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@click.group("agentlens")
@click.option(
    "--sessions-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Sessions directory (default: AGENTLENS_STORAGE_SESSIONS_DIR or ./sessions).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, sessions_dir: Path | None, verbose: bool) -> None:
    """Ingest and audit agent session logs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = (
        ConfigSessionStorage(sessions_dir=sessions_dir)
        if sessions_dir is not None
        else ConfigSessionStorage()
    )
    ctx.ensure_object(dict)
    ctx.obj["log_store"] = SessionLogStore(config)


@cli.command("ingest")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--adapter",
    default=AUTO_ADAPTER,
    show_default=True,
    type=click.Choice([AUTO_ADAPTER, *default_registry().names]),
    help="Raw log format.",
)
@click.option("--merge-session", "merge_session_id", default=None, help="Merge into this session.")
@click.option("--no-dedupe", is_flag=True, help="Keep duplicate events.")
@click.pass_context
def ingest(
    ctx: click.Context,
    file: Path,
    adapter: str,
    merge_session_id: str | None,
    no_dedupe: bool,
) -> None:
    """Ingest a raw session log FILE."""
    service = IngestService(_store(ctx))
    try:
        result = service.ingest_file(
            file,
            adapter=adapter,
            merge_session_id=merge_session_id,
            dedupe=False if no_dedupe else None,
        )
    except AgentLensError as exc:
        raise click.ClickException(str(exc)) from exc
    _render_ingest_result(result)


@cli.command("sessions")
@click.pass_context
def sessions(ctx: click.Context) -> None:
    """List stored sessions, newest first."""
    entries = _store(ctx).list_sessions()
    if not entries:
        console.print("[yellow]No sessions found.[/yellow]")
        return
    table = Table(title=f"Sessions ({len(entries)})")
    table.add_column("Session", style="cyan")
    table.add_column("Updated")
    table.add_column("Size", justify="right")
    for entry in entries:
        table.add_row(entry.session_id, entry.updated_at, f"{entry.size_bytes}")
    console.print(table)


@cli.command("audit")
@click.argument("session_id")
@click.option("--json", "as_json", is_flag=True, help="Print the audit result as JSON.")
@click.pass_context
def audit(ctx: click.Context, session_id: str, as_json: bool) -> None:
    """Normalize SESSION_ID and show the reviewer view."""
    store = _store(ctx)
    if not store.exists(session_id):
        raise click.ClickException(f"Session {session_id} not found.")
    try:
        result = run_audit(store.read_events(session_id), ConfigAuditPipeline())
    except AgentLensError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_json:
        click.echo(
            result.model_dump_json(
                indent=2, exclude_none=True, exclude={"normalized": {"raw_events"}}
            )
        )
        return
    _render_audit(result)


__all__ = ["cli"]
