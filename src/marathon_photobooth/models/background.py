"""Background catalog entry model."""

from dataclasses import dataclass
from enum import Enum


class TimePeriod(str, Enum):
    """Era a background depicts."""

    PAST = "past"
    PRESENT = "present"
    FUTURE = "future"


class Pose(str, Enum):
    """Body pose the runner should take in a scene."""

    RUNNING = "running"
    WALKING = "walking"


@dataclass(frozen=True)
class Background:
    """A themed scene the selfie is composited onto."""

    id: str
    name: str
    file: str
    description: str
    lighting: str
    color_treatment: str
    composition: str
    time_period: TimePeriod = TimePeriod.PRESENT
    era: str = "2025"
    pose: Pose = Pose.RUNNING
    artistic_style: str | None = None

    @property
    def is_oil_painting(self) -> bool:
        return (
            self.artistic_style == "oil-painting"
            or "oil painting" in self.color_treatment.lower()
        )
