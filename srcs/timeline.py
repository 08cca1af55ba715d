"""
Timeline recorder.

Keeps the running memory proxy and snapshots it after every event.
Leaked sizes are never subtracted, so unreclaimed memory stays visible.
"""

from type_defs import TimelinePoint


class TimelineRecorder:
    """Running memory total with one point per processed event."""

    def __init__(self):
        self.current_memory = 0
        self.points: list[TimelinePoint] = []

    def allocate(self, size: int) -> None:
        self.current_memory += size

    def release(self, size: int) -> None:
        self.current_memory -= size

    def record(self, line: int) -> None:
        """Append a snapshot for the event at ``line``."""
        self.points.append({"line": line, "memory": self.current_memory})
