"""Human readable size formatting."""
import math


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_size(num_bytes: float) -> str:
    """
    Format a byte count as B, KB, MB or GB.

    Bytes and kilobytes are whole numbers, megabytes and gigabytes carry
    one decimal: 500 -> "500B", 2048 -> "2KB", 1572864 -> "1.5MB".
    """
    if num_bytes < 1024:
        return f"{int(num_bytes)}B"

    value = num_bytes / 1024
    if _round_half_up(value) < 1000:
        return f"{_round_half_up(value)}KB"

    value /= 1024
    if value < 1000:
        return f"{value:.1f}MB"

    value /= 1024
    return f"{value:.1f}GB"
