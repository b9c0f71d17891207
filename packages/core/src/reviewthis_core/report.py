"""Markdown rendering of the finished review report.

The model formats the report; this module only builds the request and
writes the response verbatim. Rendering is best-effort: any failure is
reported and swallowed, and the JSON report the records came from is never
touched.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from reviewthis_core.prompt import build_render_prompt
from reviewthis_core.providers.base import InferenceError

if TYPE_CHECKING:
    from reviewthis_core.providers.base import BaseInferenceClient
    from reviewthis_store.models import ReviewRecord

console = Console()
logger = logging.getLogger(__name__)


def rendered_path_for(report_path: str | Path) -> Path:
    """The Markdown sibling of a report: same base name, ``.md`` extension."""
    return Path(report_path).with_suffix(".md")


def render_report(records: list[ReviewRecord], output_path: str | Path, client: BaseInferenceClient) -> Path | None:
    """Ask the model to turn ``records`` into a Markdown document at ``output_path``.

    Returns the written path, or None if rendering failed.
    """
    output_path = Path(output_path)
    logger.debug("Generating markdown report for %d record(s)", len(records))

    report_json = json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)
    try:
        markdown = client.send(build_render_prompt(report_json))
        output_path.write_text(markdown + "\n", encoding="utf-8")
    except (InferenceError, OSError) as e:
        logger.warning("Markdown rendering failed: %s", e)
        console.print(f"[yellow]Could not generate markdown report: {escape(str(e))}[/yellow]")
        return None

    console.print(f"Markdown report generated: {output_path}")
    return output_path
