"""Display helpers for the view layer."""

_SUFFIXES = (
    (1e9, "B"),
    (1e6, "M"),
    (1e3, "K"),
)


def format_value(value):
    """Abbreviates thousands/millions/billions with 3 decimals, e.g. 1500 -> '1.500K'."""
    # Suffix is picked from the raw value, so 999_999.9996 renders as "1000.000K".
    for threshold, suffix in _SUFFIXES:
        if value >= threshold:
            return f"{value / threshold:.3f}{suffix}"
    return f"{value:.3f}"


def format_remaining(remaining):
    return (
        f"{remaining.years}y {remaining.days}d "
        f"{remaining.hours:02d}h {remaining.minutes:02d}m {remaining.seconds:02d}s"
    )
