# lyricsync/utils/__init__.py
"""
Utilities package
Logging, string helpers, signals and request coalescing
"""

from .logger import (
    get_logger,
    configure_from_settings,
    setup_logging,
    log_performance,
    get_current_log_file
)
from .helpers import (
    calculate_similarity,
    levenshtein_distance,
    format_clock,
    is_valid_url,
    truncate_string
)
from .events import Signal
from .coalesce import InFlightRequestRegistry

__all__ = [
    # Logger exports
    'get_logger',
    'configure_from_settings',
    'setup_logging',
    'log_performance',
    'get_current_log_file',

    # Helper exports
    'calculate_similarity',
    'levenshtein_distance',
    'format_clock',
    'is_valid_url',
    'truncate_string',

    # Concurrency primitives
    'Signal',
    'InFlightRequestRegistry',
]
