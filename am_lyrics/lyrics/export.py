from __future__ import annotations

import json

from .model import Lyrics, LyricsLine


def export_json(lyrics: Lyrics) -> str:
    return json.dumps(
        {
            "language": lyrics.language,
            "paragraphs": [
                [
                    {
                        "text": line.text,
                        "start_ms": line.start_ms,
                        "end_ms": line.end_ms,
                        "parts": [{"text": p.text, "start_ms": p.start_ms, "end_ms": p.end_ms} for p in line.parts],
                    }
                    for line in paragraph
                ]
                for paragraph in lyrics.paragraphs
            ],
        },
        ensure_ascii=False,
        indent=2,
    )


def _fmt_lrc_time(ms: int) -> str:
    m, rem = divmod(ms, 60_000)
    s, ms2 = divmod(rem, 1_000)
    # keep 2 decimals for compatibility
    return f"{m:02d}:{s:02d}.{ms2 // 10:02d}"


def _lrc_header(lyrics: Lyrics, tags: dict[str, str] | None) -> list[str]:
    out: list[str] = []
    all_tags = dict(tags or {})
    if lyrics.language:
        all_tags.setdefault("la", lyrics.language)
    for k in sorted(all_tags.keys()):
        if all_tags[k]:
            out.append(f"[{k}:{all_tags[k]}]")
    return out


def export_lrc(lyrics: Lyrics, tags: dict[str, str] | None = None) -> str:
    """Line-synced LRC. Lines without a start time have no place in LRC and are dropped."""
    out = _lrc_header(lyrics, tags)
    for line in lyrics.lines():
        if line.start_ms is None:
            continue
        out.append(f"[{_fmt_lrc_time(line.start_ms)}]{line.text}")
    return "\n".join(out) + ("\n" if out else "")


def _enhanced_line(line: LyricsLine) -> str:
    if not line.parts or all(p.start_ms is None for p in line.parts):
        return line.text
    words: list[str] = []
    for p in line.parts:
        if p.start_ms is not None:
            words.append(f"<{_fmt_lrc_time(p.start_ms)}>{p.text}")
        else:
            words.append(p.text)
    out = " ".join(words)
    last = line.parts[-1]
    if last.end_ms is not None:
        out += f" <{_fmt_lrc_time(last.end_ms)}>"
    return out


def export_enhanced_lrc(lyrics: Lyrics, tags: dict[str, str] | None = None) -> str:
    """
    LRC with word timing: [mm:ss.xx]<mm:ss.xx>word <mm:ss.xx>word <end>.
    The trailing tag carries the end of the last word.
    """
    out = _lrc_header(lyrics, tags)
    for line in lyrics.lines():
        if line.start_ms is None:
            continue
        out.append(f"[{_fmt_lrc_time(line.start_ms)}]{_enhanced_line(line)}")
    return "\n".join(out) + ("\n" if out else "")


def export_plain(lyrics: Lyrics) -> str:
    text = lyrics.text()
    return text + "\n" if text else ""


def _fmt_srt_time(ms: int) -> str:
    # HH:MM:SS,mmm
    h, rem = divmod(ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms2 = divmod(rem, 1_000)
    return f"{h:02d}:{m:02d}:{s:02d},{ms2:03d}"


def export_srt(lyrics: Lyrics, last_line_duration_ms: int = 2000) -> str:
    """
    End time is the line's own end, else the next start time,
    else start + last_line_duration_ms.
    """
    lines = [line for line in lyrics.lines() if line.start_ms is not None]
    if not lines:
        return ""
    out: list[str] = []
    for i, line in enumerate(lines, start=1):
        start = line.start_ms or 0
        if line.end_ms is not None:
            end = max(line.end_ms, start + 1)
        elif i < len(lines):
            end = max(lines[i].start_ms or 0, start + 1)
        else:
            end = start + last_line_duration_ms
        out.append(str(i))
        out.append(f"{_fmt_srt_time(start)} --> {_fmt_srt_time(end)}")
        out.append(line.text or "")
        out.append("")
    return "\n".join(out)


EXPORTERS = {
    "lrc": export_lrc,
    "elrc": export_enhanced_lrc,
    "txt": export_plain,
    "srt": export_srt,
    "json": export_json,
}
