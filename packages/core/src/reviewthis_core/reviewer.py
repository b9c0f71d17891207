"""Core review orchestration."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from reviewthis_core.changeset import resolve_changed_files
from reviewthis_core.diff import get_file_diff
from reviewthis_core.prompt import NO_ISSUES, REVIEW_FAILED_PREFIX, build_request
from reviewthis_core.providers.base import InferenceError
from reviewthis_core.report import render_report, rendered_path_for
from reviewthis_store.models import ReviewRecord

if TYPE_CHECKING:
    from reviewthis_core.config import ReviewConfig
    from reviewthis_core.providers.base import BaseInferenceClient
    from reviewthis_core.vcs import VersionControl
    from reviewthis_store.base import BaseReportStore

console = Console()
logger = logging.getLogger(__name__)

_HIGH_SEVERITY_RE = re.compile(r"security|vulnerab|exploit|injection", re.IGNORECASE)
_MEDIUM_SEVERITY_RE = re.compile(r"performance|memory leak|complexity", re.IGNORECASE)


@dataclass
class ReviewSummary:
    """Result returned by run_review: what happened to every resolved file."""

    report_path: str
    reviewed_files: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    failed_files: list[str] = field(default_factory=list)
    records: list[ReviewRecord] = field(default_factory=list)
    rendered_path: str | None = None

    @property
    def total_files(self) -> int:
        return len(self.reviewed_files) + len(self.skipped_files) + len(self.failed_files)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def failure_review(error: Exception) -> str:
    return f"{REVIEW_FAILED_PREFIX} {error}"


def is_failed_review(review: str) -> bool:
    return review.startswith(REVIEW_FAILED_PREFIX)


def determine_severity(review: str) -> str:
    """Classify a review by the most serious kind of issue it mentions."""
    if is_failed_review(review):
        return "unknown"
    if review.strip() == NO_ISSUES:
        return "none"
    if _HIGH_SEVERITY_RE.search(review):
        return "high"
    if _MEDIUM_SEVERITY_RE.search(review):
        return "medium"
    return "low"


def review_file(
    client: BaseInferenceClient,
    vcs: VersionControl,
    path: str,
    config: ReviewConfig,
) -> ReviewRecord | None:
    """Review one file. Returns None when the file has no textual changes."""
    diff_text = get_file_diff(vcs, path, config)
    if not diff_text.strip():
        logger.debug("Empty diff for %s; skipping", path)
        return None

    request = build_request(path, diff_text, config.policy)
    logger.debug("Querying model for review of %s", request.file_path)
    try:
        review = client.send(request.prompt_text)
    except InferenceError as e:
        logger.warning("Review failed for %s: %s", path, e)
        review = failure_review(e)

    return ReviewRecord(
        file=path,
        review=review,
        timestamp=utc_timestamp(),
        severity=determine_severity(review),
    )


def run_review(
    config: ReviewConfig,
    vcs: VersionControl,
    client: BaseInferenceClient,
    store: BaseReportStore,
    render: bool = True,
) -> ReviewSummary:
    """Run the full review pipeline and return a ReviewSummary.

    Files are reviewed strictly one at a time in resolver order. Each record
    is persisted before the next file starts, so an interrupted run leaves a
    valid report of everything reviewed so far.
    """
    files = resolve_changed_files(vcs, config)
    summary = ReviewSummary(report_path=config.report_path)

    # A re-run always starts from an empty report, even when nothing changed.
    store.initialize()
    if not files:
        console.print("[yellow]No files to review.[/yellow]")
        return summary

    total = len(files)

    for i, path in enumerate(files, 1):
        console.print(f"[[{i}/{total}]] Reviewing: {escape(path)}")

        record = review_file(client, vcs, path, config)
        if record is None:
            console.print("  [dim]No textual changes; skipped.[/dim]")
            summary.skipped_files.append(path)
            continue

        store.append(record)
        summary.records.append(record)
        if is_failed_review(record.review):
            console.print(f"  [red]{escape(record.review)}[/red]")
            summary.failed_files.append(path)
        else:
            summary.reviewed_files.append(path)

    if render and summary.records:
        rendered = render_report(store.load(), rendered_path_for(config.report_path), client)
        summary.rendered_path = str(rendered) if rendered else None

    return summary
