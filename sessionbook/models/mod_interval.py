from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo
from pydantic import BaseModel, model_validator
from sessionbook.configuration.config import Config


def schedule_tz() -> ZoneInfo:
    return ZoneInfo(Config.SCHEDULE_TIMEZONE)


def parse_hhmm(value) -> time:
    """Accept "HH:MM", "HH:MM:SS" or a time object."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    hours, minutes = str(value).split(":")[:2]
    return time(int(hours), int(minutes))


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def combine(day: date, at: time) -> datetime:
    """Timezone-aware start of a slot in the schedule timezone."""
    return datetime.combine(day, parse_hhmm(at), tzinfo=schedule_tz())


class TimeInterval(BaseModel):
    """Half-open interval [start, end)."""
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self

    @classmethod
    def from_slot(cls, day: date, at: time, duration_minutes: int) -> "TimeInterval":
        start = combine(day, at)
        return cls(start=start, end=start + timedelta(minutes=duration_minutes))

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and self.end > other.start

    def contains(self, other: "TimeInterval") -> bool:
        return self.start <= other.start and other.end <= self.end
