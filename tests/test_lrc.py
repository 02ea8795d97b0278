"""Tests for LRC parsing and the lyrics models"""

import pytest

from lyricsync.exceptions import LyricsParseError
from lyricsync.lyrics.lrc import has_timestamps, parse_lrc, parse_plain_lyrics, parse_synced_lyrics
from lyricsync.lyrics.models import (
    Interlude,
    LineSyncedLyrics,
    LineVocal,
    LyricsType,
    StaticLyrics,
    display_lines,
    lyrics_from_dict,
    lyrics_to_dict,
    lyrics_type_of
)


class TestParseSyncedLyrics:

    def test_two_lines(self):
        """Test two stamped lines"""
        lyrics = parse_synced_lyrics("[00:01.00] hello\n[00:03.50] world")

        assert lyrics == LineSyncedLyrics(
            start_time=1.0,
            end_time=6.5,
            content=[
                LineVocal(start_time=1.0, end_time=3.5, text="hello"),
                LineVocal(start_time=3.5, end_time=6.5, text="world"),
            ]
        )

    @pytest.mark.parametrize("stamp,expected", [
        ("[01:02.50]", 62.5),
        ("[01:02.05]", 62.05),
        ("[01:02.123]", 62.123),
        ("[10:00.00]", 600.0),
    ])
    def test_fraction_is_right_padded(self, stamp, expected):
        """Test fraction is right padded"""
        lyrics = parse_synced_lyrics(f"{stamp} line")
        assert lyrics.start_time == pytest.approx(expected)

    def test_unstamped_and_empty_lines_are_dropped(self):
        """Test unstamped and empty lines are dropped"""
        transcript = "\n".join([
            "[ar:Rick Astley]",
            "[00:05.00]",
            "no stamp here",
            "[00:06.00] kept",
            "",
        ])

        lyrics = parse_synced_lyrics(transcript)

        assert [vocal.text for vocal in lyrics.vocals] == ["kept"]
        assert lyrics.end_time == pytest.approx(9.0)

    def test_nothing_usable_is_none(self):
        """Test nothing usable gives None"""
        assert parse_synced_lyrics("[00:05.00]\n[00:06.00]   ") is None
        assert parse_synced_lyrics("") is None

    def test_parsing_is_deterministic(self):
        """Test parsing is deterministic"""
        transcript = "[00:01.00] hello\n[00:03.50] world"
        assert parse_synced_lyrics(transcript) == parse_synced_lyrics(transcript)

    def test_vocal_times_are_contiguous(self):
        """Test vocal times are contiguous"""
        lyrics = parse_synced_lyrics("[00:01.00] a\n[00:02.00] b\n[00:04.25] c")
        vocals = lyrics.vocals

        for current, following in zip(vocals, vocals[1:]):
            assert current.end_time == following.start_time


class TestParsePlainLyrics:

    def test_non_empty_lines_are_kept(self):
        """Test non-empty lines are kept"""
        lyrics = parse_plain_lyrics("  hello \n\n world\n")
        assert [line.text for line in lyrics.lines] == ["hello", "world"]

    def test_blank_text_is_none(self):
        """Test blank text gives None"""
        assert parse_plain_lyrics(" \n\n") is None
        assert parse_plain_lyrics(None) is None


class TestParseLrc:

    def test_stamped_transcript_is_synced(self):
        """Test stamped transcript is synced"""
        assert parse_lrc("[00:01.00] hello").type is LyricsType.LINE

    def test_plain_transcript_is_static(self):
        """Test plain transcript is static"""
        assert parse_lrc("hello\nworld").type is LyricsType.STATIC

    def test_has_timestamps(self):
        """Test timestamp detection"""
        assert has_timestamps("intro\n[00:12.34] line")
        assert not has_timestamps("just words [with brackets]")


class TestLyricsDocuments:

    def test_line_document_round_trip(self, line_lyrics):
        """Test line document round trip"""
        assert lyrics_from_dict(lyrics_to_dict(line_lyrics)) == line_lyrics

    def test_syllable_document_round_trip(self, syllable_lyrics):
        """Test syllable document round trip"""
        assert lyrics_from_dict(syllable_lyrics.to_dict()) == syllable_lyrics

    def test_malformed_records_are_skipped(self):
        """Test malformed records are skipped"""
        lyrics = lyrics_from_dict({
            'Type': 'Line',
            'StartTime': 0,
            'EndTime': 10,
            'Content': [
                {'Type': 'Vocal', 'StartTime': 1, 'EndTime': 2, 'Text': 'ok'},
                {'Type': 'Vocal', 'StartTime': 'soon', 'EndTime': 2, 'Text': 'bad time'},
                {'Type': 'Interlude', 'StartTime': 2, 'EndTime': 5},
                'not an object',
            ]
        })

        assert lyrics.content == [
            LineVocal(start_time=1.0, end_time=2.0, text='ok'),
            Interlude(start_time=2.0, end_time=5.0),
        ]

    @pytest.mark.parametrize("data", [
        None,
        [],
        {'Type': 'Karaoke'},
        {'Type': 'Line', 'EndTime': 3},
        {'Type': 'Syllable', 'StartTime': True, 'EndTime': 3},
    ])
    def test_invalid_documents_raise(self, data):
        """Test invalid documents raise"""
        with pytest.raises(LyricsParseError):
            lyrics_from_dict(data)

    def test_lyrics_type_of_absent_outcomes(self, static_lyrics):
        """Test lyrics type of absent outcomes"""
        assert lyrics_type_of(static_lyrics) is LyricsType.STATIC
        assert lyrics_type_of(False) is None
        assert lyrics_type_of(None) is None

    def test_type_ranks_are_ordered(self):
        """Test type ranks are ordered"""
        assert LyricsType.STATIC.rank < LyricsType.LINE.rank < LyricsType.SYLLABLE.rank


class TestDisplayLines:

    def test_static(self, static_lyrics):
        """Test static display lines"""
        assert display_lines(static_lyrics) == [(None, "hello"), (None, "world")]

    def test_line_synced_skips_interludes(self, line_lyrics):
        """Test line synced skips interludes"""
        line_lyrics.content.insert(1, Interlude(start_time=3.0, end_time=3.5))
        assert display_lines(line_lyrics) == [(1.0, "hello"), (3.5, "world")]

    def test_syllables_are_joined_into_words(self, syllable_lyrics):
        """Test syllables are joined into words"""
        assert display_lines(syllable_lyrics) == [(0.5, "hello world")]

    def test_static_document_with_no_lines(self):
        """Test static document with no lines"""
        assert display_lines(StaticLyrics()) == []
