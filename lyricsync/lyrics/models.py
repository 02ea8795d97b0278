"""
Data models for structured lyrics

Lyrics come in exactly three timing fidelities, modelled as a closed sum type:

1. **StaticLyrics**: plain lines without any timing
2. **LineSyncedLyrics**: each vocal line has a start and end time, with
   optional instrumental interludes between lines
3. **SyllableSyncedLyrics**: each vocal carries a lead syllable track and
   optional background vocals, every syllable individually timed

All times are seconds from the start of the track.

The wire format (used by the primary lyrics service and by the caches) is a
JSON object with a "Type" of "Static", "Line" or "Syllable". Parsing is
lenient at record level: a malformed line, vocal or syllable is skipped and
logged, while a document that is not an object or has an unknown type raises
LyricsParseError.

TransformedLyrics is the display-ready form produced by the transform
collaborator (romanization and similar). The engine treats it as opaque
apart from caching it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Protocol, Tuple, Union

from ..exceptions import LyricsParseError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class LyricsType(Enum):
    """
    Timing fidelity of a lyrics document

    Values are the wire names; `rank` orders fidelities so that a higher rank
    is strictly better timing.
    """
    STATIC = "Static"
    LINE = "Line"
    SYLLABLE = "Syllable"

    @property
    def rank(self) -> int:
        return _TYPE_RANKS[self]


_TYPE_RANKS = {
    LyricsType.STATIC: 0,
    LyricsType.LINE: 1,
    LyricsType.SYLLABLE: 2,
}


def _time(data: Dict[str, Any], key: str) -> float:
    value = data[key]
    # bool is an int subclass but never a valid time
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _text(data: Dict[str, Any], key: str = 'Text') -> str:
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _optional_text(data: Dict[str, Any], key: str = 'RomanizedText') -> Optional[str]:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _with_romanized(result: Dict[str, Any], romanized_text: Optional[str]) -> Dict[str, Any]:
    if romanized_text is not None:
        result['RomanizedText'] = romanized_text
    return result


@dataclass
class TextLine:
    """One untimed line of static lyrics"""
    text: str
    romanized_text: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TextLine':
        return cls(text=_text(data), romanized_text=_optional_text(data))

    def to_dict(self) -> Dict[str, Any]:
        return _with_romanized({'Text': self.text}, self.romanized_text)


@dataclass
class Interlude:
    """Instrumental gap between vocals"""
    start_time: float
    end_time: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Interlude':
        return cls(start_time=_time(data, 'StartTime'), end_time=_time(data, 'EndTime'))

    def to_dict(self) -> Dict[str, Any]:
        return {'Type': 'Interlude', 'StartTime': self.start_time, 'EndTime': self.end_time}


@dataclass
class LineVocal:
    """A timed vocal line; opposite_aligned marks a second singer's side"""
    start_time: float
    end_time: float
    text: str
    opposite_aligned: bool = False
    romanized_text: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineVocal':
        return cls(
            start_time=_time(data, 'StartTime'),
            end_time=_time(data, 'EndTime'),
            text=_text(data),
            opposite_aligned=bool(data.get('OppositeAligned', False)),
            romanized_text=_optional_text(data)
        )

    def to_dict(self) -> Dict[str, Any]:
        return _with_romanized({
            'Type': 'Vocal',
            'StartTime': self.start_time,
            'EndTime': self.end_time,
            'Text': self.text,
            'OppositeAligned': self.opposite_aligned,
        }, self.romanized_text)


@dataclass
class Syllable:
    """A timed syllable; is_part_of_word joins it to the next syllable without a space"""
    start_time: float
    end_time: float
    text: str
    is_part_of_word: bool = False
    romanized_text: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Syllable':
        return cls(
            start_time=_time(data, 'StartTime'),
            end_time=_time(data, 'EndTime'),
            text=_text(data),
            is_part_of_word=bool(data.get('IsPartOfWord', False)),
            romanized_text=_optional_text(data)
        )

    def to_dict(self) -> Dict[str, Any]:
        return _with_romanized({
            'StartTime': self.start_time,
            'EndTime': self.end_time,
            'Text': self.text,
            'IsPartOfWord': self.is_part_of_word,
        }, self.romanized_text)


@dataclass
class SyllableVocal:
    """One vocal track made of timed syllables"""
    start_time: float
    end_time: float
    syllables: List[Syllable] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SyllableVocal':
        return cls(
            start_time=_time(data, 'StartTime'),
            end_time=_time(data, 'EndTime'),
            syllables=_parse_records(data.get('Syllables'), Syllable.from_dict, 'syllable')
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'StartTime': self.start_time,
            'EndTime': self.end_time,
            'Syllables': [syllable.to_dict() for syllable in self.syllables],
        }

    @property
    def text(self) -> str:
        parts = []
        for index, syllable in enumerate(self.syllables):
            parts.append(syllable.text)
            if not syllable.is_part_of_word and index < len(self.syllables) - 1:
                parts.append(' ')
        return ''.join(parts)


@dataclass
class SyllableVocalSet:
    """Lead vocal plus optional background vocals sung at the same time"""
    lead: SyllableVocal
    background: List[SyllableVocal] = field(default_factory=list)
    opposite_aligned: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SyllableVocalSet':
        lead = data.get('Lead')
        if not isinstance(lead, dict):
            raise ValueError("Lead must be an object")
        return cls(
            lead=SyllableVocal.from_dict(lead),
            background=_parse_records(data.get('Background'), SyllableVocal.from_dict, 'background vocal'),
            opposite_aligned=bool(data.get('OppositeAligned', False))
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'Type': 'Vocal',
            'OppositeAligned': self.opposite_aligned,
            'Lead': self.lead.to_dict(),
        }
        if self.background:
            result['Background'] = [vocal.to_dict() for vocal in self.background]
        return result


@dataclass
class StaticLyrics:
    lines: List[TextLine] = field(default_factory=list)

    type: ClassVar[LyricsType] = LyricsType.STATIC

    def to_dict(self) -> Dict[str, Any]:
        return {'Type': self.type.value, 'Lines': [line.to_dict() for line in self.lines]}


@dataclass
class LineSyncedLyrics:
    start_time: float
    end_time: float
    content: List[Union[LineVocal, Interlude]] = field(default_factory=list)

    type: ClassVar[LyricsType] = LyricsType.LINE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'Type': self.type.value,
            'StartTime': self.start_time,
            'EndTime': self.end_time,
            'Content': [item.to_dict() for item in self.content],
        }

    @property
    def vocals(self) -> List[LineVocal]:
        return [item for item in self.content if isinstance(item, LineVocal)]


@dataclass
class SyllableSyncedLyrics:
    start_time: float
    end_time: float
    content: List[Union[SyllableVocalSet, Interlude]] = field(default_factory=list)

    type: ClassVar[LyricsType] = LyricsType.SYLLABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'Type': self.type.value,
            'StartTime': self.start_time,
            'EndTime': self.end_time,
            'Content': [item.to_dict() for item in self.content],
        }


ProviderLyrics = Union[StaticLyrics, LineSyncedLyrics, SyllableSyncedLyrics]


def _parse_records(records: Any, parser, label: str) -> list:
    """Parse a list of records, skipping the ones that are malformed"""
    if records is None:
        return []
    if not isinstance(records, list):
        logger.debug(f"Ignoring non-list {label} collection")
        return []

    parsed = []
    for record in records:
        if not isinstance(record, dict):
            logger.debug(f"Skipping malformed {label}: {record!r}")
            continue
        try:
            parsed.append(parser(record))
        except (KeyError, TypeError, ValueError) as e:
            logger.debug(f"Skipping malformed {label}: {e}")
    return parsed


def _parse_line_content(record: Dict[str, Any]) -> Union[LineVocal, Interlude]:
    if record.get('Type') == 'Interlude':
        return Interlude.from_dict(record)
    return LineVocal.from_dict(record)


def _parse_syllable_content(record: Dict[str, Any]) -> Union[SyllableVocalSet, Interlude]:
    if record.get('Type') == 'Interlude':
        return Interlude.from_dict(record)
    return SyllableVocalSet.from_dict(record)


def lyrics_from_dict(data: Any) -> ProviderLyrics:
    """
    Build a lyrics document from its wire representation

    Args:
        data: Decoded JSON object with a "Type" of Static, Line or Syllable

    Returns:
        The matching lyrics variant, with malformed records skipped

    Raises:
        LyricsParseError: If data is not an object, has an unknown type, or
                          lacks the document-level timing of a synced variant
    """
    if not isinstance(data, dict):
        raise LyricsParseError("Lyrics document must be an object")

    kind = data.get('Type')
    try:
        lyrics_type = LyricsType(kind)
    except ValueError:
        raise LyricsParseError(f"Unknown lyrics type: {kind!r}", details={'type': kind})

    if lyrics_type is LyricsType.STATIC:
        return StaticLyrics(lines=_parse_records(data.get('Lines'), TextLine.from_dict, 'line'))

    try:
        start_time = _time(data, 'StartTime')
        end_time = _time(data, 'EndTime')
    except (KeyError, ValueError) as e:
        raise LyricsParseError(f"Invalid {kind} lyrics timing: {e}", details={'type': kind})

    if lyrics_type is LyricsType.LINE:
        return LineSyncedLyrics(
            start_time=start_time,
            end_time=end_time,
            content=_parse_records(data.get('Content'), _parse_line_content, 'line vocal')
        )

    return SyllableSyncedLyrics(
        start_time=start_time,
        end_time=end_time,
        content=_parse_records(data.get('Content'), _parse_syllable_content, 'syllable vocal')
    )


def lyrics_to_dict(lyrics: ProviderLyrics) -> Dict[str, Any]:
    return lyrics.to_dict()


def lyrics_type_of(lyrics: Union[ProviderLyrics, None, bool]) -> Optional[LyricsType]:
    """Timing fidelity of a lyrics outcome, None for absent (None or False)"""
    if isinstance(lyrics, (StaticLyrics, LineSyncedLyrics, SyllableSyncedLyrics)):
        return lyrics.type
    return None


def display_lines(lyrics: ProviderLyrics) -> List[Tuple[Optional[float], str]]:
    """
    Flatten lyrics into (start_time, text) pairs in display order

    Static lines have no start time. Interludes are left out.
    """
    if isinstance(lyrics, StaticLyrics):
        return [(None, line.text) for line in lyrics.lines]
    if isinstance(lyrics, LineSyncedLyrics):
        return [(vocal.start_time, vocal.text) for vocal in lyrics.vocals]
    if isinstance(lyrics, SyllableSyncedLyrics):
        return [
            (item.lead.start_time, item.lead.text)
            for item in lyrics.content
            if isinstance(item, SyllableVocalSet)
        ]
    raise TypeError(f"Unknown lyrics type: {type(lyrics).__name__}")


@dataclass
class TransformedLyrics:
    """
    Display-ready lyrics produced by a LyricsTransformer

    Attributes:
        lyrics: The lyrics document, possibly with romanized text filled in
        romanized_language: Language the romanization was produced for, if any
    """
    lyrics: ProviderLyrics
    romanized_language: Optional[str] = None

    @property
    def type(self) -> LyricsType:
        return self.lyrics.type

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TransformedLyrics':
        if not isinstance(data, dict):
            raise LyricsParseError("Transformed lyrics must be an object")
        language = data.get('RomanizedLanguage')
        return cls(
            lyrics=lyrics_from_dict(data.get('Lyrics')),
            romanized_language=language if isinstance(language, str) else None
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {'Lyrics': self.lyrics.to_dict()}
        if self.romanized_language is not None:
            result['RomanizedLanguage'] = self.romanized_language
        return result


class LyricsTransformer(Protocol):
    """Turns provider lyrics into display-ready lyrics; None means nothing displayable"""

    async def transform(self, lyrics: ProviderLyrics) -> Optional[TransformedLyrics]:
        ...


class PassthroughTransformer:
    """Transformer that wraps provider lyrics unchanged"""

    async def transform(self, lyrics: ProviderLyrics) -> Optional[TransformedLyrics]:
        return TransformedLyrics(lyrics=lyrics)
