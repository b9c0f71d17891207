"""CLI entry point for review-this.

Reviews the files changed in the current git repository with a local Ollama
model, one file at a time, and writes review_results.json plus a Markdown
rendering of it.
"""

from __future__ import annotations

import importlib.metadata
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from reviewthis_core.config import build_config, load_config, validate_config
from reviewthis_core.providers.base import InferenceError
from reviewthis_core.providers.ollama import OllamaClient
from reviewthis_core.reviewer import ReviewSummary, run_review
from reviewthis_core.utils.code import DEBUG_LOG_NAME
from reviewthis_core.utils.workdir import working_directory
from reviewthis_core.vcs import GitVersionControl, ToolNotFoundError, VersionControlError, ensure_git_available
from reviewthis_store.json_file import JsonReportStore

console = Console()
logger = logging.getLogger(__name__)

_PACKAGES = ("reviewthis_core", "reviewthis_store", "reviewthis_cli")
_HANDLER_NAMES = ("review-this-stderr", "review-this-file")

_severity_style = {
    "high": "red",
    "medium": "yellow",
    "low": "blue",
    "none": "green",
    "unknown": "magenta",
}


class _ComponentFilter(logging.Filter):
    """Tag each record with a short component name: reviewthis_core.changeset → CHANGESET."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.component = record.name.rsplit(".", 1)[-1].upper()
        return True


class _ClickEchoHandler(logging.Handler):
    """Write log lines to whatever stderr click currently sees."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def configure_logging(debug: bool, log_path: str | Path | None = None) -> None:
    """Route warnings to stderr; with ``debug``, everything to stderr and ``log_path``.

    Safe to call repeatedly; handlers from a previous call are replaced.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() in _HANDLER_NAMES:
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter("[%(asctime)s][%(component)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    component_filter = _ComponentFilter()

    stderr_handler = _ClickEchoHandler()
    stderr_handler.set_name(_HANDLER_NAMES[0])
    handlers: list[logging.Handler] = [stderr_handler]

    if debug and log_path is not None:
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.set_name(_HANDLER_NAMES[1])
        handlers.append(file_handler)

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(component_filter)
        root.addHandler(handler)

    level = logging.DEBUG if debug else logging.WARNING
    for name in _PACKAGES:
        logging.getLogger(name).setLevel(level)


def _print_summary(summary: ReviewSummary) -> None:
    if not summary.records:
        return

    table = Table(title="Review summary", show_header=True, header_style="bold cyan")
    table.add_column("File", style="bold")
    table.add_column("Severity", width=9)
    table.add_column("Review", max_width=70)

    for r in summary.records:
        style = _severity_style.get(r.severity, "white")
        first_line = r.review.strip().splitlines()[0] if r.review.strip() else ""
        table.add_row(escape(r.file), f"[{style}]{r.severity}[/{style}]", escape(first_line))

    console.print()
    console.print(table)
    console.print(
        f"[bold]{len(summary.reviewed_files)}[/bold] file(s) reviewed"
        + (f", [bold]{len(summary.skipped_files)}[/bold] skipped" if summary.skipped_files else "")
        + (f", [red]{len(summary.failed_files)} failed[/red]" if summary.failed_files else "")
    )
    console.print(f"Results written to {summary.report_path}")


@click.command("review-this", context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(
    version=importlib.metadata.version("review-this"),
    prog_name="review-this",
)
@click.option(
    "--mode",
    "-m",
    default=None,
    help="Compare mode: 'working' (uncommitted changes) or 'branch' (compare with a branch). [default: working]",
)
@click.option("--branch", "-b", default=None, help="Branch to compare against in branch mode. [default: develop]")
@click.option("--model", "-ml", default=None, help="Ollama model to review with. [default: codellama]")
@click.option(
    "--temperature",
    "-t",
    type=click.FloatRange(0, 2),
    default=None,
    help="Sampling temperature between 0 and 2. [default: 0.2]",
)
@click.option(
    "--modelfile",
    "-mf",
    default=None,
    help="Path to a modelfile whose SYSTEM block replaces the built-in review instructions.",
)
@click.option("--host", default=None, help="Ollama server URL. [default: http://localhost:11434]")
@click.option(
    "--output",
    "-o",
    "report_path",
    default=None,
    help="Path of the JSON report; the Markdown report is written next to it. [default: review_results.json]",
)
@click.option(
    "--config",
    "config_path",
    default=".review-this.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVIEW_THIS_CONFIG",
)
@click.option("--debug", "-d", is_flag=True, help=f"Enable debug output (also appended to {DEBUG_LOG_NAME}).")
def main(
    mode: str | None,
    branch: str | None,
    model: str | None,
    temperature: float | None,
    modelfile: str | None,
    host: str | None,
    report_path: str | None,
    config_path: str,
    debug: bool,
):
    """AI code review of your git changes with a local Ollama model.

    Every changed file is diffed and reviewed on its own. Results are appended
    to the JSON report as each file finishes, then rendered to Markdown.
    """
    invocation_dir = Path.cwd()

    raw_config = load_config(
        config_path,
        cli_overrides={
            "mode": mode,
            "branch": branch,
            "model": model,
            "temperature": temperature,
            "modelfile": modelfile,
            "host": host,
            "report_path": report_path,
            "debug": True if debug else None,
        },
    )
    # Outputs stay relative to where the user ran the tool, not the repo root.
    raw_config["debug_log_path"] = str(invocation_dir / raw_config["debug_log_path"])
    configure_logging(bool(raw_config.get("debug")), raw_config["debug_log_path"])

    try:
        validate_config(raw_config)
    except ValueError as e:
        raise click.UsageError(str(e))

    try:
        ensure_git_available()
    except ToolNotFoundError as e:
        raise click.ClickException(str(e))

    vcs = GitVersionControl()
    if not vcs.is_repository():
        raise click.ClickException("Not in a git repository.")

    raw_config["report_path"] = str(invocation_dir / raw_config["report_path"])

    try:
        config = build_config(raw_config)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))

    logger.debug(
        "Mode: %s, branch: %s, model: %s, temperature: %s",
        config.mode,
        config.branch,
        config.model,
        config.temperature,
    )

    with OllamaClient(
        host=config.host,
        model=config.model,
        temperature=config.temperature,
        timeout=config.request_timeout,
    ) as client:
        try:
            client.health_check()
        except InferenceError as e:
            raise click.ClickException(str(e))

        try:
            with working_directory(vcs.top_level()):
                summary = run_review(config, GitVersionControl(), client, JsonReportStore(config.report_path))
        except VersionControlError as e:
            raise click.ClickException(str(e))

    _print_summary(summary)
