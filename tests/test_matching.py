"""Tests for fallback candidate matching"""

import pytest

from lyricsync.lyrics.matching import (
    MatchQuery,
    best_match,
    calculate_artist_similarity,
    composite_score,
    duration_score,
    is_acceptable,
    normalize_string,
    rank,
    score_candidate,
    split_artists,
    string_similarity
)


QUERY = MatchQuery(
    track_name="Never Gonna Give You Up",
    artist_name="Rick Astley",
    album_name="Whenever You Need Somebody",
    duration=213.0
)


def candidate(candidate_id, track="Never Gonna Give You Up", artist="Rick Astley",
              album="Whenever You Need Somebody", duration=213.0, synced=True):
    return score_candidate(QUERY, candidate_id, track, artist, album, duration, synced)


class TestNormalization:

    @pytest.mark.parametrize("value,expected", [
        ("Never Gonna Give You Up", "nevergonnagiveyouup"),
        ("Never Gonna Give You Up - Remastered 2022", "nevergonnagiveyouup"),
        ("Song (feat. Someone Else)", "song"),
        ("Song [ft. Someone]", "song"),
        ("Don't Stop Me Now!", "dontstopmenow"),
        ("Beyoncé", "beyoncé"),
        ("", ""),
        (None, ""),
    ])
    def test_normalize_string(self, value, expected):
        """Test string normalization"""
        assert normalize_string(value) == expected

    def test_identical_after_normalization(self):
        """Test identical after normalization"""
        assert string_similarity("Never Gonna Give You Up", "never gonna give you up!") == 1.0


class TestArtistSimilarity:

    def test_split_artists(self):
        """Test split artists"""
        assert split_artists("Calvin Harris & Dua Lipa, Sam Smith") == ["calvinharris", "dualipa", "samsmith"]
        assert split_artists("A x B feat. C") == ["a", "b", "c"]

    def test_reordered_credits_match(self):
        """Test reordered credits match"""
        assert calculate_artist_similarity("Calvin Harris & Dua Lipa", "Dua Lipa, Calvin Harris") == 1.0

    def test_shared_artist_counts(self):
        """Test shared artist counts"""
        assert calculate_artist_similarity("Rick Astley", "Rick Astley & Friends") == 1.0

    def test_unrelated_artists(self):
        """Test unrelated artists"""
        assert calculate_artist_similarity("Rick Astley", "Metallica") < 0.5


class TestScoring:

    def test_composite_score_example(self):
        """Test composite score example"""
        score = composite_score(0.95, 0.85, 1.0, 0.9, True)

        assert score == pytest.approx(9.75)
        assert is_acceptable(0.95, 0.85, 0.9, 1.0)

    @pytest.mark.parametrize("delta,expected", [
        (0, 1.0), (2, 1.0), (2.5, 0.8), (5, 0.8), (7, 0.5), (10, 0.5), (10.5, 0.0), (-3, 0.8),
    ])
    def test_duration_steps(self, delta, expected):
        """Test duration steps"""
        assert duration_score(delta) == expected

    def test_score_grows_with_each_similarity(self):
        """Test score grows with each similarity"""
        base = composite_score(0.5, 0.5, 6.0, 0.5, False)

        assert composite_score(0.6, 0.5, 6.0, 0.5, False) > base
        assert composite_score(0.5, 0.6, 6.0, 0.5, False) > base
        assert composite_score(0.5, 0.5, 6.0, 0.6, False) > base
        assert composite_score(0.5, 0.5, 1.0, 0.5, False) > base
        assert composite_score(0.5, 0.5, 6.0, 0.5, True) == pytest.approx(base + 0.5)

    def test_perfect_candidate(self):
        """Test perfect candidate"""
        scored = candidate(1, track="Never Gonna Give You Up - Remastered 2022")

        assert scored.track_similarity == 1.0
        assert scored.score == pytest.approx(10.5)
        assert scored.is_acceptable()


class TestAcceptance:

    @pytest.mark.parametrize("delta", [15.0, 20.0, -15.0])
    def test_large_duration_gap_rejects(self, delta):
        """Test large duration gap rejects"""
        assert not is_acceptable(1.0, 1.0, 1.0, delta)

    def test_track_and_artist_match(self):
        """Test track and artist match"""
        assert is_acceptable(0.85, 0.75, 0.0, 3.0)

    def test_strong_track_with_partial_artist(self):
        """Test strong track with partial artist"""
        assert is_acceptable(0.95, 0.55, 0.0, 3.0)
        assert not is_acceptable(0.85, 0.55, 0.0, 3.0)

    def test_strong_track_with_album(self):
        """Test strong track with album"""
        assert is_acceptable(0.95, 0.1, 0.85, 3.0)

    def test_weak_track_rejects(self):
        """Test weak track rejects"""
        assert not is_acceptable(0.7, 1.0, 1.0, 0.0)


class TestRanking:

    def test_best_first(self):
        """Test best first"""
        weak = candidate(1, duration=221.0)
        strong = candidate(2)

        assert [c.candidate_id for c in rank([weak, strong])] == [2, 1]

    def test_ties_keep_discovery_order(self):
        """Test ties keep discovery order"""
        first = candidate("first")
        second = candidate("second")

        assert [c.candidate_id for c in rank([first, second])] == ["first", "second"]
        assert best_match([first, second]).candidate_id == "first"

    def test_only_top_candidate_is_considered(self):
        """Test only top candidate is considered"""
        # Top scorer fails the duration gate; the acceptable runner-up is not promoted
        off_duration = candidate(1, duration=230.0)
        acceptable = candidate(2, artist="Rick Astly", album="Other", synced=False, duration=223.0)
        assert off_duration.score > acceptable.score
        assert acceptable.is_acceptable()

        assert best_match([acceptable, off_duration]) is None

    def test_no_candidates(self):
        """Test no candidates"""
        assert best_match([]) is None
