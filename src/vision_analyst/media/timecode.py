"""Timestamp formatting for frame analyses."""

import math


def format_timestamp(seconds: float) -> str:
    """
    Render a position in seconds as MM:SS.

    Sub-second remainders are truncated, both fields are zero-padded to two
    digits, and minutes are not wrapped at 60.

    Examples:
        format_timestamp(185) -> "03:05"
        format_timestamp(59.9) -> "00:59"
        format_timestamp(3725) -> "62:05"
    """
    if seconds < 0 or math.isnan(seconds):
        raise ValueError(f"seconds must be non-negative, got {seconds}")

    whole = int(seconds)
    minutes, secs = divmod(whole, 60)
    return f"{minutes:02d}:{secs:02d}"
