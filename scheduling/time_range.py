from dataclasses import dataclass
from datetime import datetime, time

from scheduling.errors import InvalidRange

_TIME_FORMATS = ("%H:%M:%S", "%H:%M")


def parse_time(value) -> time:
    """
    Accepts "HH:MM:SS" (or "HH:MM") strings and datetime.time objects.
    """
    if isinstance(value, time):
        return value.replace(microsecond=0)
    if not isinstance(value, str):
        raise InvalidRange(f"Invalid time value: {value!r}")
    raw = value.strip()
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(raw, fmt).time()
        except ValueError:
            continue
    raise InvalidRange(f"Invalid time format: {value!r}. Use HH:MM:SS")


def format_time(value: time) -> str:
    return value.strftime("%H:%M:%S")


def _seconds(value: time) -> int:
    return value.hour * 3600 + value.minute * 60 + value.second


@dataclass(frozen=True, order=True)
class TimeRange:
    """
    Half-open [start, end) interval of wall-clock time inside one day.

    Ordering compares start first, then end. A range ending at 10:00 does not
    overlap one starting at 10:00. Ranges that would cross midnight cannot be
    expressed because end must be strictly after start on the same day.
    """
    start: time
    end: time

    def __post_init__(self):
        if not isinstance(self.start, time) or not isinstance(self.end, time):
            raise InvalidRange("start and end must be times of day")
        # second precision only
        object.__setattr__(self, "start", self.start.replace(microsecond=0))
        object.__setattr__(self, "end", self.end.replace(microsecond=0))
        if self.start >= self.end:
            raise InvalidRange(
                f"end_time must be after start_time ({format_time(self.start)} >= {format_time(self.end)})"
            )

    @classmethod
    def parse(cls, start, end) -> "TimeRange":
        return cls(parse_time(start), parse_time(end))

    def overlaps(self, other: "TimeRange") -> bool:
        return self.start < other.end and other.start < self.end

    def duration_seconds(self) -> int:
        return _seconds(self.end) - _seconds(self.start)

    def to_dict(self) -> dict:
        return {"start_time": format_time(self.start), "end_time": format_time(self.end)}

    def __str__(self):
        return f"{format_time(self.start)}-{format_time(self.end)}"


def find_overlap(ranges):
    """
    Returns the first overlapping (a, b) pair, or None when all ranges are disjoint.
    Pairs are reported in input order.
    """
    indexed = sorted(enumerate(ranges), key=lambda item: item[1])
    for (i, current), (j, following) in zip(indexed, indexed[1:]):
        if current.overlaps(following):
            return (current, following) if i < j else (following, current)
    return None
