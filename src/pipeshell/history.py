"""Command history log and its flat-file persistence."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from pipeshell.errors import HistoryError

HISTORY_ENCODING = "utf-8"


class HistoryLog:
    """Ordered log of command lines.

    ``persisted_count`` marks how many leading entries are already written to
    a history file, so ``append_unsaved_to`` only writes the rest.
    """

    def __init__(self, entries: list[str] | None = None) -> None:
        self._entries: list[str] = list(entries or [])
        self.persisted_count = 0

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, line: str) -> None:
        self._entries.append(line)

    def entries(self) -> list[str]:
        return list(self._entries)

    def tail(self, count: int | None = None) -> list[tuple[int, str]]:
        """Return the last ``count`` entries with their 1-based position in the whole log."""
        if count is None:
            count = len(self._entries)
        if count <= 0:
            return []
        start = max(len(self._entries) - count, 0)
        return [(start + offset + 1, entry) for offset, entry in enumerate(self._entries[start:])]

    def load_from(self, path: str | Path, *, mark_persisted: bool = False) -> int:
        """Append every non-blank line of ``path``; return how many were read."""
        try:
            text = Path(path).read_text(encoding=HISTORY_ENCODING)
        except (OSError, UnicodeDecodeError) as exc:
            raise HistoryError(f"history: cannot read file '{path}'") from exc

        lines = [line.strip() for line in text.split("\n")]
        loaded = [line for line in lines if line]
        self._entries.extend(loaded)
        if mark_persisted:
            self.persisted_count = len(self._entries)
        logger.debug("history.load path={} entries={}", path, len(loaded))
        return len(loaded)

    def save_all_to(self, path: str | Path) -> None:
        """Overwrite ``path`` with the whole log."""
        try:
            Path(path).write_text(_render(self._entries), encoding=HISTORY_ENCODING)
        except OSError as exc:
            raise HistoryError(f"history: cannot write to file '{path}'") from exc
        self.persisted_count = len(self._entries)
        logger.debug("history.save path={} entries={}", path, len(self._entries))

    def append_unsaved_to(self, path: str | Path) -> None:
        """Append the entries added since the last save to ``path``."""
        pending = self._entries[self.persisted_count :]
        if not pending:
            return
        try:
            with Path(path).open("a", encoding=HISTORY_ENCODING) as handle:
                handle.write(_render(pending))
        except OSError as exc:
            raise HistoryError(f"history: cannot append to file '{path}'") from exc
        self.persisted_count = len(self._entries)
        logger.debug("history.append path={} entries={}", path, len(pending))


def _render(entries: list[str]) -> str:
    return "".join(f"{entry}\n" for entry in entries)
