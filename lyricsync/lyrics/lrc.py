"""
LRC transcript parsing

LRCLIB delivers synced lyrics as LRC text, one `[mm:ss.xx] text` stamp per
line, and unsynced lyrics as plain text. Both are turned into the structured
lyrics model here:

- A stamped line yields a LineVocal starting at minutes*60 + seconds +
  fraction/1000, where the two or three digit fraction is right-padded to
  three digits ("50" -> 500 ms, "05" -> 50 ms, "123" -> 123 ms).
- Each line ends where the next one starts; the last line ends 3 seconds
  after it starts.
- Lines without a stamp, or with a stamp but no text, are dropped.
- Parsing never fails on bad lines. A transcript with nothing usable yields
  None ("no usable lyrics"), never an empty document.
"""

import re
from typing import List, Optional, Tuple, Union

from .models import LineSyncedLyrics, LineVocal, StaticLyrics, TextLine
from ..utils.logger import get_logger

logger = get_logger(__name__)

# [mm:ss.xx] or [mm:ss.xxx] followed by the line text
LRC_LINE_PATTERN = re.compile(r'^\[(\d{2}):(\d{2})\.(\d{2,3})\]\s*(.*)$')

# Anything that looks like a time stamp, used to tell LRC apart from plain text
TIMESTAMP_PATTERN = re.compile(r'^\s*\[\d+:\d+(?:[.:]\d+)?\]', re.MULTILINE)

LAST_LINE_DURATION = 3.0


def _stamped_lines(transcript: str) -> List[Tuple[float, str]]:
    lines = []
    for raw_line in transcript.splitlines():
        raw_line = raw_line.strip()
        if not raw_line:
            continue

        match = LRC_LINE_PATTERN.match(raw_line)
        if not match:
            logger.debug(f"Skipping unstamped LRC line: {raw_line!r}")
            continue

        minutes, seconds, fraction, text = match.groups()
        text = text.strip()
        if not text:
            continue

        milliseconds = int(fraction.ljust(3, '0'))
        lines.append((int(minutes) * 60 + int(seconds) + milliseconds / 1000, text))

    return lines


def parse_synced_lyrics(transcript: str) -> Optional[LineSyncedLyrics]:
    """
    Parse an LRC transcript into line-synced lyrics

    Args:
        transcript: LRC text

    Returns:
        LineSyncedLyrics, or None when no line carries both a stamp and text
    """
    stamped = _stamped_lines(transcript or "")
    if not stamped:
        return None

    vocals = []
    for index, (start_time, text) in enumerate(stamped):
        if index + 1 < len(stamped):
            end_time = stamped[index + 1][0]
        else:
            end_time = start_time + LAST_LINE_DURATION
        vocals.append(LineVocal(start_time=start_time, end_time=end_time, text=text))

    return LineSyncedLyrics(
        start_time=vocals[0].start_time,
        end_time=vocals[-1].end_time,
        content=vocals
    )


def parse_plain_lyrics(text: str) -> Optional[StaticLyrics]:
    """
    Split plain lyrics into static lines

    Returns:
        StaticLyrics of the trimmed non-empty lines, or None if there are none
    """
    lines = [line.strip() for line in (text or "").splitlines()]
    lines = [line for line in lines if line]
    if not lines:
        return None
    return StaticLyrics(lines=[TextLine(text=line) for line in lines])


def has_timestamps(transcript: str) -> bool:
    return bool(TIMESTAMP_PATTERN.search(transcript or ""))


def parse_lrc(transcript: str) -> Union[LineSyncedLyrics, StaticLyrics, None]:
    """
    Parse a transcript that may or may not be time-stamped

    A transcript with any time stamp is treated as LRC; one without a single
    stamp becomes static lyrics of its non-empty lines.
    """
    if has_timestamps(transcript):
        return parse_synced_lyrics(transcript)
    return parse_plain_lyrics(transcript)
