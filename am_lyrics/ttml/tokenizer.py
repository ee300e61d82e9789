from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Union
from xml.parsers import expat

from .errors import TtmlTokenizeError

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class ElementStart:
    name: str


@dataclass(frozen=True, slots=True)
class Attribute:
    name: str
    value: str


@dataclass(frozen=True, slots=True)
class ElementEnd:
    name: str
    # True for a self-closing tag (<span/>)
    empty: bool = False


@dataclass(frozen=True, slots=True)
class Text:
    text: str


Token = Union[ElementStart, Attribute, ElementEnd, Text]


def _local(qname: str) -> str:
    # "tt:p" -> "p"; namespace processing is off, so prefixes come through as-is
    return qname.rsplit(":", 1)[-1]


def tokenize(text: str) -> Iterator[Token]:
    """
    Lazily turn markup into a flat event stream:
    ElementStart, Attribute*, (Text | nested events)*, ElementEnd.

    Adjacent character data is coalesced so one text node is one Text event.
    Lexical errors surface as TtmlTokenizeError.
    """
    data = text.encode("utf-8")
    pending: list[Token] = []
    text_buf: list[str] = []
    # byte index of the element whose start tag was the last thing seen
    just_opened: list[int | None] = [None]

    parser = expat.ParserCreate("utf-8")
    parser.ordered_attributes = True

    def flush_text() -> None:
        if text_buf:
            pending.append(Text("".join(text_buf)))
            text_buf.clear()
            just_opened[0] = None

    def on_start(name: str, attrs: list[str]) -> None:
        flush_text()
        just_opened[0] = parser.CurrentByteIndex
        pending.append(ElementStart(_local(name)))
        for i in range(0, len(attrs), 2):
            pending.append(Attribute(_local(attrs[i]), attrs[i + 1]))

    def on_end(name: str) -> None:
        flush_text()
        start_idx = just_opened[0]
        just_opened[0] = None
        idx = parser.CurrentByteIndex
        # expat reports an empty-element tag either at its own start or just past "/>"
        empty = start_idx is not None and (idx == start_idx or data[idx - 2 : idx] == b"/>")
        pending.append(ElementEnd(_local(name), empty=empty))

    def on_text(chunk: str) -> None:
        text_buf.append(chunk)

    parser.StartElementHandler = on_start
    parser.EndElementHandler = on_end
    parser.CharacterDataHandler = on_text

    total = len(data)
    pos = 0
    while True:
        chunk = data[pos : pos + _CHUNK_SIZE]
        pos += len(chunk)
        final = pos >= total
        error: expat.ExpatError | None = None
        try:
            parser.Parse(chunk, final)
        except expat.ExpatError as e:
            error = e
        if final and error is None:
            flush_text()

        # Everything lexed before the error still goes out first: a consumer
        # that stops early never sees trailing garbage.
        yield from pending
        pending.clear()

        if error is not None:
            raise TtmlTokenizeError(
                f"Malformed markup: {expat.ErrorString(error.code)} (line {error.lineno}, column {error.offset})",
                line=error.lineno,
                column=error.offset,
            ) from error
        if final:
            return
