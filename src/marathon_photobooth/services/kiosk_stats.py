"""Per-kiosk job counters."""

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime

from marathon_photobooth.models.job import KioskStats


class KioskStatsRegistry:
    """Counters for an allow-list of kiosks.

    Events for kiosk ids outside the allow-list are ignored.
    """

    def __init__(self, kiosk_ids: Iterable[str]) -> None:
        self._stats: dict[str, KioskStats] = {kiosk_id: KioskStats() for kiosk_id in kiosk_ids}

    def __contains__(self, kiosk_id: object) -> bool:
        return kiosk_id in self._stats

    @property
    def kiosk_ids(self) -> list[str]:
        return list(self._stats)

    def get(self, kiosk_id: str) -> KioskStats | None:
        """Copy of the stats for ``kiosk_id``, or None if not tracked."""
        stats = self._stats.get(kiosk_id)
        return replace(stats) if stats is not None else None

    def snapshot(self) -> dict[str, KioskStats]:
        return {kiosk_id: replace(stats) for kiosk_id, stats in self._stats.items()}

    def record_submission(self, kiosk_id: str, at: datetime) -> None:
        stats = self._stats.get(kiosk_id)
        if stats is None:
            return
        stats.total += 1
        stats.last_active = at

    def record_completed(self, kiosk_id: str) -> None:
        stats = self._stats.get(kiosk_id)
        if stats is not None:
            stats.completed += 1

    def record_failed(self, kiosk_id: str) -> None:
        stats = self._stats.get(kiosk_id)
        if stats is not None:
            stats.failed += 1
