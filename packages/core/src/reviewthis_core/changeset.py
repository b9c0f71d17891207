"""Change set resolution: which files a run reviews, and in what order."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from reviewthis_core.report import rendered_path_for
from reviewthis_core.utils.code import is_excluded, is_lock_file
from reviewthis_store.json_file import TEMP_PREFIX

if TYPE_CHECKING:
    from reviewthis_core.config import ReviewConfig
    from reviewthis_core.vcs import VersionControl

logger = logging.getLogger(__name__)


def _own_outputs(config: ReviewConfig) -> set[Path]:
    """Resolved paths of the files this tool writes, which must never be reviewed."""
    report = Path(config.report_path).resolve()
    return {report, rendered_path_for(report), Path(config.debug_log_path).resolve()}


def _is_own_output(path: str, own: set[Path], report_dir: Path) -> bool:
    resolved = Path(path).resolve()
    if resolved in own:
        return True
    # Temp files of an interrupted report write sit next to the report.
    name = resolved.name
    return resolved.parent == report_dir and name.startswith(TEMP_PREFIX) and name.endswith(".tmp")


def list_candidates(vcs: VersionControl, config: ReviewConfig) -> list[str]:
    """Return the raw changed paths for the configured comparison mode."""
    if config.mode == "branch":
        logger.debug("Listing files changed between %s and HEAD", config.branch)
        return vcs.branch_changes(config.branch)

    # Untracked files are invisible to `diff` until the index knows about them.
    vcs.intent_to_add()
    return vcs.working_tree_changes()


def resolve_changed_files(vcs: VersionControl, config: ReviewConfig) -> list[str]:
    """Return the ordered, de-duplicated list of files to review.

    A path is kept only if it exists on disk as a regular file, is not
    ignored, is not a lock file or one of this tool's own outputs, and does
    not match a configured exclude pattern. Paths are relative to the
    repository root, which must be the current working directory.
    """
    own = _own_outputs(config)
    report_dir = Path(config.report_path).resolve().parent
    seen: set[str] = set()
    files: list[str] = []

    for path in list_candidates(vcs, config):
        if not path or path in seen:
            continue
        seen.add(path)

        if is_lock_file(path) or _is_own_output(path, own, report_dir):
            logger.debug("Skipping generated file: %s", path)
            continue
        if is_excluded(path, config.exclude):
            logger.debug("Skipping excluded file: %s", path)
            continue
        if not os.path.isfile(path):
            logger.debug("Skipping missing file: %s", path)
            continue
        if vcs.is_ignored(path):
            logger.debug("Skipping ignored file: %s", path)
            continue

        logger.debug("Found file to review: %s", path)
        files.append(path)

    return files
