"""Per-file diff bodies in unified-diff format.

Tracked files get git's own diff. Untracked files have no baseline, so a
"new file" diff is synthesized from their content; downstream the model sees
the same shape either way.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reviewthis_core.config import ReviewConfig
    from reviewthis_core.vcs import VersionControl

logger = logging.getLogger(__name__)


def synthesize_new_file_diff(path: str, content: str) -> str:
    """Render ``content`` as a diff that adds the whole file.

    The hunk header counts every line of the file, including a last line
    without a trailing newline. An empty file yields an empty diff.
    """
    lines = content.splitlines()
    if not lines:
        return ""
    header = [
        f"diff --git a/{path} b/{path}",
        "new file mode 100644",
        "--- /dev/null",
        f"+++ b/{path}",
        f"@@ -0,0 +1,{len(lines)} @@",
    ]
    body = [f"+{line}" for line in lines]
    return "\n".join(header + body) + "\n"


def has_hunks(diff_text: str) -> bool:
    """True if the diff changes content, not just mode or existence."""
    return any(line.startswith("@@") for line in diff_text.splitlines())


def _content_only(path: str, diff_text: str) -> str:
    # Mode changes and empty new files produce a header with no hunks.
    if diff_text and not has_hunks(diff_text):
        logger.debug("No content changes in %s", path)
        return ""
    return diff_text


def get_file_diff(vcs: VersionControl, path: str, config: ReviewConfig) -> str:
    """Return the diff body to review for ``path``; empty means nothing to review."""
    if config.mode == "branch":
        logger.debug("Getting diff for %s against %s", path, config.branch)
        return _content_only(path, vcs.diff_branch(config.branch, path))

    if vcs.is_tracked(path):
        logger.debug("Getting diff for tracked file: %s", path)
        return _content_only(path, vcs.diff_working(path))

    logger.debug("Synthesizing new-file diff for untracked file: %s", path)
    content = Path(path).read_text(encoding="utf-8", errors="replace")
    return synthesize_new_file_diff(path, content)
