"""
Utility functions and helpers for lyricsync
Common functions for string distance, clock formatting and validation
"""

from typing import Union
from urllib.parse import urlparse


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Compute the edit distance between two strings

    Args:
        s1: First string
        s2: Second string

    Returns:
        Minimum number of single-character insertions, deletions and
        substitutions turning s1 into s2
    """
    len1, len2 = len(s1), len(s2)

    # Create matrix
    matrix = [[0] * (len2 + 1) for _ in range(len1 + 1)]

    # Initialize first row and column
    for i in range(len1 + 1):
        matrix[i][0] = i
    for j in range(len2 + 1):
        matrix[0][j] = j

    # Fill matrix
    for i in range(1, len1 + 1):
        for j in range(1, len2 + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1

            matrix[i][j] = min(
                matrix[i - 1][j] + 1,      # deletion
                matrix[i][j - 1] + 1,      # insertion
                matrix[i - 1][j - 1] + cost  # substitution
            )

    return matrix[len1][len2]


def calculate_similarity(str1: str, str2: str) -> float:
    """
    Calculate string similarity using Levenshtein distance

    Strings are compared as given; callers normalize first. Two empty
    strings are identical (1.0), one empty string against a non-empty
    one shares nothing (0.0).

    Args:
        str1: First string
        str2: Second string

    Returns:
        Similarity score between 0.0 and 1.0
    """
    if str1 == str2:
        return 1.0

    max_len = max(len(str1), len(str2))
    if max_len == 0:
        return 1.0

    distance = levenshtein_distance(str1, str2)
    similarity = 1 - (distance / max_len)

    return max(0.0, similarity)


def format_clock(seconds: Union[int, float], pad_minutes: bool = False) -> str:
    """
    Format a position in seconds as a player clock string

    Args:
        seconds: Position in seconds (negative values clamp to zero)
        pad_minutes: Zero-pad minutes to two digits, used for long tracks

    Returns:
        String like "3:07", or "03:07" when pad_minutes is set
    """
    seconds = max(0.0, float(seconds))
    minutes = int(seconds // 60)
    secs = int(seconds % 60)

    if pad_minutes:
        return f"{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def is_valid_url(url: str) -> bool:
    """
    Check if string is a valid URL

    Args:
        url: URL string to validate

    Returns:
        True if valid URL
    """
    try:
        result = urlparse(url)
        return all([result.scheme, result.netloc])
    except ValueError:
        return False


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate string to maximum length with suffix

    Args:
        text: Original text
        max_length: Maximum length including suffix
        suffix: Suffix to add when truncating

    Returns:
        Truncated string
    """
    if len(text) <= max_length:
        return text

    truncate_length = max_length - len(suffix)
    if truncate_length <= 0:
        return suffix[:max_length]

    return text[:truncate_length] + suffix
