"""
Append-only JSON log of the direct messages the bot receives.

The log file is a single JSON array that the dashboard serves verbatim, so
every append is a read-modify-write of the whole file. Two rules keep that
safe:

- All appends go through one ``asyncio.Lock``, so concurrent direct messages
  can no longer interleave their read and write and lose each other's entry.
- The new array is written to a temporary file in the same directory and
  moved over the old one with ``os.replace``; a crash mid-write leaves the
  previous log intact.

A log that exists but cannot be parsed is not silently discarded: it is
renamed to ``<name>.corrupt-<timestamp>`` before a fresh log is started, and
if that rename fails the append is refused so the old data stays in place.
"""

from __future__ import annotations

import asyncio
import datetime
import json
import os
import tempfile
from pathlib import Path
from typing import Any, List, Set

from concierge.datatypes.dm_log_datatypes import DMLogEntry
from concierge.datatypes.result_datatypes import AppendResult
from concierge.util.logger import get_logger

logger = get_logger("dm_log_store")


class DMLogError(Exception):
    """Raised internally when the DM log cannot be read or written safely."""


class DMLogStore:
    """Single-writer, file-backed DM audit log.

    Parameters
    ----------
    path:
        Location of the JSON array file. Parent directories are created on
        first write.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._write_lock = asyncio.Lock()
        self._pending_appends: Set[asyncio.Task] = set()

    # --------------------------
    # Public API
    # --------------------------
    async def append(self, entry: DMLogEntry) -> AppendResult:
        """Append ``entry`` to the end of the log.

        Never raises: failures are logged and reported through the returned
        :class:`AppendResult`.
        """
        async with self._write_lock:
            try:
                count = await asyncio.to_thread(self._append_sync, entry)
            except DMLogError as exc:
                logger.error("[DM LOG] Failed to log DM from %s: %s", entry.author, exc)
                return AppendResult.failed(str(exc))
            except Exception as exc:
                logger.exception("[DM LOG] Unexpected error logging DM from %s: %s", entry.author, exc)
                return AppendResult.failed(str(exc))

        logger.debug("[DM LOG] Logged DM from %s (%d entries)", entry.author, count)
        return AppendResult.ok()

    def schedule_append(self, entry: DMLogEntry) -> asyncio.Task | None:
        """Start :meth:`append` in the background and return immediately.

        The task is tracked until it finishes so :meth:`wait_for_pending` can
        flush outstanding writes on shutdown.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("[DM LOG] Cannot log DM from %s: no running event loop", entry.author)
            return None

        task = loop.create_task(self.append(entry))
        self._pending_appends.add(task)
        task.add_done_callback(self._pending_appends.discard)
        return task

    async def wait_for_pending(self) -> None:
        """Wait until every scheduled append has completed."""
        if self.pending_count:
            logger.info("[DM LOG] Waiting for %d pending write(s) to %s", self.pending_count, self.path)
        while self._pending_appends:
            await asyncio.gather(*list(self._pending_appends), return_exceptions=True)

    @property
    def pending_count(self) -> int:
        return len(self._pending_appends)

    async def read_all(self) -> List[DMLogEntry]:
        """Return the logged entries in append order.

        A missing log reads as empty. Items that are not JSON objects are
        skipped here but kept on disk.

        Raises:
            DMLogError: If the file exists but cannot be read or parsed.
        """
        items = await asyncio.to_thread(self._read_items_sync, False)
        entries: List[DMLogEntry] = []
        for index, item in enumerate(items):
            if isinstance(item, dict):
                entries.append(DMLogEntry.from_dict(item))
            else:
                logger.warning("[DM LOG] Skipping malformed entry #%d in %s", index, self.path)
        return entries

    # --------------------------
    # Blocking helpers (run in a worker thread)
    # --------------------------
    def _append_sync(self, entry: DMLogEntry) -> int:
        items = self._read_items_sync(quarantine_corrupt=True)
        items.append(entry.to_dict())
        self._write_items_sync(items)
        return len(items)

    def _read_items_sync(self, quarantine_corrupt: bool) -> List[Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except UnicodeDecodeError as exc:
            raw = None
            problem = f"invalid UTF-8 ({exc})"
        except OSError as exc:
            raise DMLogError(f"cannot read {self.path}: {exc}") from exc

        if raw is not None:
            if not raw.strip():
                return []

            try:
                data = json.loads(raw)
            except json.JSONDecodeError as exc:
                problem = f"invalid JSON ({exc})"
            else:
                if isinstance(data, list):
                    return data
                problem = f"expected a JSON array, found {type(data).__name__}"

        if not quarantine_corrupt:
            raise DMLogError(f"{self.path} is unreadable: {problem}")

        self._quarantine_sync(problem)
        return []

    def _quarantine_sync(self, problem: str) -> Path:
        stamp = datetime.datetime.now(datetime.timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        quarantine_path = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            os.replace(self.path, quarantine_path)
        except OSError as exc:
            raise DMLogError(
                f"{self.path} is unreadable ({problem}) and could not be moved aside: {exc}"
            ) from exc

        logger.warning(
            "[DM LOG] %s was unreadable (%s); moved it to %s and started a new log",
            self.path,
            problem,
            quarantine_path,
        )
        return quarantine_path

    def _write_items_sync(self, items: List[Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                json.dump(items, tmp_file, indent=2, ensure_ascii=False)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise DMLogError(f"cannot write {self.path}: {exc}") from exc
