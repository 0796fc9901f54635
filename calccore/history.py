import logging
from collections import deque
from datetime import datetime
from typing import Callable, Deque, Tuple

from calccore.domain import HistoryEntry

logger = logging.getLogger(__name__)


class HistoryLog:
    """Append-only calculation log, newest entry first.

    Entries are never edited or removed one by one; ``clear`` empties the
    whole log.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock
        self._entries: Deque[HistoryEntry] = deque()

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        self._entries.appendleft(entry)
        logger.debug("History: %s | %s = %s", entry.tool, entry.expression, entry.result)
        return entry

    def record(self, tool: str, expression: str, result: str) -> HistoryEntry:
        return self.append(HistoryEntry(tool=tool, expression=expression, result=result, timestamp=self._clock()))

    def clear(self) -> None:
        count = len(self._entries)
        self._entries.clear()
        logger.info("Cleared %d history entries", count)

    def all(self) -> Tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
