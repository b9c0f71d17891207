"""JsonReportStore: the review report as a single JSON array on disk.

Every append rewrites the whole file: read the current array, add one
record, write the result to a temporary file next to the report and
atomically rename it into place. A crash mid-run therefore leaves a complete,
parseable report holding every record appended so far, and a reader never
sees a half-written file.

Data format: a UTF-8 JSON array of ``{file, review, timestamp, severity}``
objects in processing order.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from reviewthis_store.base import BaseReportStore
from reviewthis_store.models import ReviewRecord

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".review_results."


class JsonReportStore(BaseReportStore):
    """Single-writer JSON report with write-temp-then-rename persistence.

    No locking: the review pipeline is strictly sequential and this store is
    the only writer of its file.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def initialize(self) -> None:
        self._write([])
        logger.debug("Initialized empty report at %s", self.path)

    def append(self, record: ReviewRecord) -> None:
        records = self._read()
        records.append(record.to_dict())
        self._write(records)
        logger.debug("Appended review for %s (%d record(s) total)", record.file, len(records))

    def load(self) -> list[ReviewRecord]:
        return [ReviewRecord.from_dict(r) for r in self._read()]

    def _read(self) -> list[dict]:
        """Read the current JSON array, or return [] if the file is missing."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        data = json.loads(text or "[]")
        if not isinstance(data, list):
            raise ValueError(f"Report file {self.path} does not contain a JSON array.")
        return data

    def _write(self, records: list[dict]) -> None:
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            # mkstemp creates 0600 files; the report is an ordinary project file.
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.path)
        except BaseException:
            # Leave the previous snapshot in place and drop the partial temp file.
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
