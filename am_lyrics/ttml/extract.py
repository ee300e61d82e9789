from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from am_lyrics.lyrics.model import Lyrics, LyricsLine, LyricsPart, Paragraph

from .errors import TtmlStructureError
from .timestamp import parse_timestamp
from .tokenizer import Attribute, ElementEnd, ElementStart, Text, Token, tokenize

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _PartDraft:
    text: str = ""
    start_ms: int | None = None
    end_ms: int | None = None

    def finish(self) -> LyricsPart:
        return LyricsPart(text=self.text, start_ms=self.start_ms, end_ms=self.end_ms)


@dataclass(slots=True)
class _LineDraft:
    text: str = ""
    start_ms: int | None = None
    end_ms: int | None = None
    parts: list[LyricsPart] = field(default_factory=list)

    def finish(self) -> LyricsLine:
        text = self.text
        # synced lines carry no direct text, build it from the words
        if not text.strip():
            text = " ".join(p.text for p in self.parts)
        return LyricsLine(text=text, start_ms=self.start_ms, end_ms=self.end_ms, parts=tuple(self.parts))


class _Outside:
    pass


class _InBody:
    pass


@dataclass(slots=True)
class _InLineHeader:
    line: _LineDraft


@dataclass(slots=True)
class _InSyncedPart:
    line: _LineDraft
    part: _PartDraft
    # spans nested inside the part, closed before the part itself
    depth: int = 0


_State = _Outside | _InBody | _InLineHeader | _InSyncedPart

_OUTSIDE = _Outside()
_IN_BODY = _InBody()


def extract_lyrics(tokens: Iterable[Token], language: str) -> Lyrics:
    """
    Single pass over a TTML token stream.

    body > div > p > span maps to paragraphs > lines > parts. Everything before
    <body> is skipped and the stream is abandoned as soon as </body> shows up.
    Raises TtmlStructureError on a close tag with nothing open to close,
    TimestampParseError on a bad begin/end value.
    """
    state: _State = _OUTSIDE
    paragraphs: list[Paragraph] = []
    paragraph: list[LyricsLine] = []
    # the draft that receives the attributes of the element just opened
    attrs_for: _LineDraft | _PartDraft | None = None

    for token in tokens:
        if isinstance(token, Attribute):
            if attrs_for is not None and token.name in ("begin", "end"):
                ms = parse_timestamp(token.value)
                if token.name == "begin":
                    attrs_for.start_ms = ms
                else:
                    attrs_for.end_ms = ms
            continue
        attrs_for = None

        if isinstance(token, ElementStart):
            name = token.name
            if isinstance(state, _Outside):
                if name == "body":
                    state = _IN_BODY
            elif isinstance(state, _InBody):
                if name == "p":
                    state = _InLineHeader(_LineDraft())
                    attrs_for = state.line
            elif isinstance(state, _InLineHeader):
                if name == "span":
                    state = _InSyncedPart(state.line, _PartDraft())
                    attrs_for = state.part
            elif name == "span":
                state.depth += 1

        elif isinstance(token, Text):
            if isinstance(state, _InLineHeader):
                # whitespace between spans is not line text
                if not state.line.parts:
                    state.line.text = token.text
            elif isinstance(state, _InSyncedPart):
                state.part.text = token.text

        elif isinstance(token, ElementEnd):
            name = token.name
            if name == "body":
                break
            if isinstance(state, _Outside):
                continue

            if name == "span":
                if not isinstance(state, _InSyncedPart):
                    raise TtmlStructureError("</span> without an open span")
                if state.depth:
                    state.depth -= 1
                    continue
                state.line.parts.append(state.part.finish())
                state = _InLineHeader(state.line)
            elif name == "p":
                if isinstance(state, _InSyncedPart):
                    raise TtmlStructureError("</p> while a span is still open")
                if not isinstance(state, _InLineHeader):
                    raise TtmlStructureError("</p> without an open line")
                paragraph.append(state.line.finish())
                state = _IN_BODY
            elif name == "div" and isinstance(state, _InBody):
                paragraphs.append(tuple(paragraph))
                paragraph = []

    logger.debug("Extracted %d paragraphs (%s)", len(paragraphs), language)
    return Lyrics(language=language, paragraphs=tuple(paragraphs))


def parse_ttml(ttml: str, language: str) -> Lyrics:
    return extract_lyrics(tokenize(ttml), language)
