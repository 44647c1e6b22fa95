from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from neuroterm.api.models import LineCategory, LogEntry


def make_entry(text: str, category: LineCategory = LineCategory.output) -> LogEntry:
    return LogEntry(id=uuid4().hex, category=category, text=text, created_at=datetime.now(tz=UTC))


@dataclass(slots=True)
class LineLog:
    """Ordered, append-only record of displayed terminal lines.

    Entries are never reordered, deduplicated or edited. `clear()` is the only
    way to drop entries and it drops all of them at once.
    """

    entries: list[LogEntry] = field(default_factory=list)

    def append(self, text: str, category: LineCategory = LineCategory.output) -> LogEntry:
        entry = make_entry(text, category)
        self.entries.append(entry)
        return entry

    def extend(self, entries: Iterable[LogEntry]) -> None:
        self.entries.extend(entries)

    def clear(self) -> None:
        self.entries = []

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self.entries)
