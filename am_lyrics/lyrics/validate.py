from __future__ import annotations

from dataclasses import dataclass

from .model import Lyrics


@dataclass(frozen=True, slots=True)
class LyricsIssue:
    paragraph: int
    line: int
    part: int | None
    message: str

    def __str__(self) -> str:
        where = f"paragraph {self.paragraph + 1}, line {self.line + 1}"
        if self.part is not None:
            where += f", part {self.part + 1}"
        return f"{where}: {self.message}"


def _check_span(start_ms: int | None, end_ms: int | None) -> str | None:
    if start_ms is not None and end_ms is not None and end_ms < start_ms:
        return f"end {end_ms}ms precedes start {start_ms}ms"
    return None


def validate_lyrics(lyrics: Lyrics, strict: bool = False) -> list[LyricsIssue]:
    """
    Check timing sanity of an extracted document. The extractor trusts its
    input, callers that display or export lyrics should run this first.

    Always reported: end before start on a line or part.
    strict=True also reports starts going backwards (lines across the whole
    document, parts within a line).
    """
    issues: list[LyricsIssue] = []
    prev_line_start: int | None = None

    for pi, paragraph in enumerate(lyrics.paragraphs):
        for li, line in enumerate(paragraph):
            msg = _check_span(line.start_ms, line.end_ms)
            if msg:
                issues.append(LyricsIssue(pi, li, None, msg))

            if strict and line.start_ms is not None:
                if prev_line_start is not None and line.start_ms < prev_line_start:
                    issues.append(
                        LyricsIssue(pi, li, None, f"starts at {line.start_ms}ms, before the previous line ({prev_line_start}ms)")
                    )
                prev_line_start = line.start_ms

            prev_part_start: int | None = None
            for ri, part in enumerate(line.parts):
                msg = _check_span(part.start_ms, part.end_ms)
                if msg:
                    issues.append(LyricsIssue(pi, li, ri, msg))
                if strict and part.start_ms is not None:
                    if prev_part_start is not None and part.start_ms < prev_part_start:
                        issues.append(
                            LyricsIssue(pi, li, ri, f"starts at {part.start_ms}ms, before the previous part ({prev_part_start}ms)")
                        )
                    prev_part_start = part.start_ms

    return issues
