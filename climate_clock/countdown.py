"""Time remaining until the climate target, broken down into fixed-length units."""

from dataclasses import dataclass

from climate_clock.config import (
    MS_PER_DAY,
    MS_PER_HOUR,
    MS_PER_MINUTE,
    MS_PER_SECOND,
    MS_PER_YEAR,
)


@dataclass(frozen=True)
class TimeRemaining:
    years: int = 0
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    expired: bool = False

    def to_millis(self):
        """Whole-second milliseconds represented by the five fields."""
        return (
            self.years * MS_PER_YEAR
            + self.days * MS_PER_DAY
            + self.hours * MS_PER_HOUR
            + self.minutes * MS_PER_MINUTE
            + self.seconds * MS_PER_SECOND
        )


def compute_remaining(now, target):
    """
    Breaks target - now (epoch milliseconds) into years, days, hours, minutes and seconds.
    Each field is the floor of what is left after removing the larger units.
    Once the target has passed every field is zero.
    """
    diff = target - now
    if diff <= 0:
        return TimeRemaining(expired=True)

    years, diff = divmod(diff, MS_PER_YEAR)
    days, diff = divmod(diff, MS_PER_DAY)
    hours, diff = divmod(diff, MS_PER_HOUR)
    minutes, diff = divmod(diff, MS_PER_MINUTE)
    seconds = diff // MS_PER_SECOND  # sub-second remainder is dropped
    return TimeRemaining(int(years), int(days), int(hours), int(minutes), int(seconds))
