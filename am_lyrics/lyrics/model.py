from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True, slots=True)
class LyricsPart:
    text: str
    start_ms: int | None = None
    end_ms: int | None = None


@dataclass(frozen=True, slots=True)
class LyricsLine:
    text: str
    start_ms: int | None = None
    end_ms: int | None = None
    parts: tuple[LyricsPart, ...] = ()

    @property
    def is_synced(self) -> bool:
        return self.start_ms is not None


Paragraph = tuple[LyricsLine, ...]


@dataclass(frozen=True, slots=True)
class Lyrics:
    language: str
    paragraphs: tuple[Paragraph, ...] = ()

    def lines(self) -> Iterator[LyricsLine]:
        for paragraph in self.paragraphs:
            yield from paragraph

    @property
    def is_synced(self) -> bool:
        return any(line.is_synced for line in self.lines())

    @property
    def has_word_timing(self) -> bool:
        return any(p.start_ms is not None for line in self.lines() for p in line.parts)

    def text(self) -> str:
        """Plain text, paragraphs separated by a blank line."""
        return "\n\n".join("\n".join(line.text for line in paragraph) for paragraph in self.paragraphs)
