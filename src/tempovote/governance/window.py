"""Voting session windows.

A session opens at ``vote_start`` and stays open for a fixed duration.
It may be extended at most once.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta


class VotingWindow(str, enum.Enum):
    """Preset session lengths."""
    SHORT = "short"  # 5 min
    MEDIUM = "medium"  # 30 min
    LONG = "long"  # 2 h


_WINDOW_DURATIONS: dict[VotingWindow, timedelta] = {
    VotingWindow.SHORT: timedelta(minutes=5),
    VotingWindow.MEDIUM: timedelta(minutes=30),
    VotingWindow.LONG: timedelta(hours=2),
}


def window_duration(window: VotingWindow) -> timedelta:
    return _WINDOW_DURATIONS[window]


@dataclass
class VotingSession:
    """Mutable state of one proposal's voting window."""
    proposal_id: str
    vote_start: datetime
    duration: timedelta
    extended: bool = False

    def __post_init__(self) -> None:
        if self.duration <= timedelta(0):
            raise ValueError("session duration must be positive")

    @classmethod
    def from_window(
        cls,
        proposal_id: str,
        vote_start: datetime,
        window: VotingWindow,
    ) -> VotingSession:
        return cls(
            proposal_id=proposal_id,
            vote_start=vote_start,
            duration=window_duration(window),
        )

    @property
    def end_time(self) -> datetime:
        return self.vote_start + self.duration

    def has_expired(self, now: datetime) -> bool:
        """True strictly after the end time; the end instant itself is open."""
        return now > self.end_time

    def remaining_time(self, now: datetime) -> timedelta:
        if now >= self.end_time:
            return timedelta(0)
        return self.end_time - now

    def extend_if_possible(self, extension: timedelta) -> bool:
        """Extend the session once. Returns True if the extension applied."""
        if self.extended:
            return False
        self.duration = self.duration + extension
        self.extended = True
        return True
