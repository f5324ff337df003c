"""Slot generator for available appointment times."""

import logging
import random
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from ..models import TimeSlot

logger = logging.getLogger(__name__)


DEFAULT_SLOT_TIMES = ["9:00 AM", "10:30 AM", "1:00 PM", "2:30 PM", "4:00 PM"]
BUSINESS_DAYS = [0, 1, 2, 3, 4]  # Mon-Fri


class SlotGenerator:
    """Samples open appointment slots for the upcoming work week."""

    def __init__(
        self,
        slot_times: Optional[List[str]] = None,
        slot_duration: int = 30,
        min_slots_per_day: int = 1,
        max_slots_per_day: int = 3,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize slot generator.

        Args:
            slot_times: Fixed times of day slots may be offered at
            slot_duration: Slot duration in minutes
            min_slots_per_day: Fewest slots offered on a business day
            max_slots_per_day: Most slots offered on a business day
            rng: Random source, injectable for deterministic tests
        """
        self.slot_times = slot_times or DEFAULT_SLOT_TIMES
        self.slot_duration = slot_duration
        self.min_slots_per_day = max(1, min_slots_per_day)
        self.max_slots_per_day = min(max(self.min_slots_per_day, max_slots_per_day), len(self.slot_times))
        self.rng = rng or random.Random()

    @staticmethod
    def next_week_start(today: Optional[date] = None) -> date:
        """Monday of the upcoming work week (always after today)."""
        today = today or datetime.now(timezone.utc).date()
        return today + timedelta(days=7 - today.weekday())

    def generate_week_slots(self, today: Optional[date] = None) -> List[TimeSlot]:
        """
        Generate a random set of open slots for next Monday to Friday.

        Each day offers a random subset of the configured times, with no
        day/time pair repeated. Slots come back ordered by day, then by time.

        Args:
            today: Reference date, defaults to the current UTC date

        Returns:
            List of TimeSlot objects
        """
        monday = self.next_week_start(today)
        slots = []
        seen = set()

        for day_offset in BUSINESS_DAYS:
            current_date = monday + timedelta(days=day_offset)
            date_str = current_date.strftime("%Y-%m-%d")
            count = self.rng.randint(self.min_slots_per_day, self.max_slots_per_day)

            for time_str in self.rng.sample(self.slot_times, count):
                if (date_str, time_str) in seen:
                    continue
                seen.add((date_str, time_str))
                slots.append(TimeSlot(
                    date=date_str,
                    time=time_str,
                    duration_minutes=self.slot_duration,
                ))

        slots.sort(key=lambda s: (s.date, self._time_sort_key(s.time)))
        logger.debug(f"Generated {len(slots)} slots for week of {monday}")
        return slots

    def _time_sort_key(self, time_str: str):
        try:
            return datetime.strptime(time_str, "%I:%M %p").time()
        except ValueError:
            return datetime.max.time()

    def format_slots_for_prompt(self, slots: List[TimeSlot]) -> str:
        """
        Format slots as one line per day for the assistant instructions.

        Args:
            slots: List of TimeSlot objects

        Returns:
            Human-readable text, e.g. "Monday, March 10: 9:00 AM, 1:00 PM"
        """
        if not slots:
            return "No appointment slots are currently available."

        # Group by date for cleaner output
        by_date = {}
        for slot in slots:
            by_date.setdefault(slot.date, []).append(slot.time)

        lines = []
        for date_str, times in by_date.items():
            try:
                date_obj = datetime.strptime(date_str, "%Y-%m-%d")
                friendly_date = date_obj.strftime("%A, %B %d").replace(" 0", " ")
            except ValueError:
                friendly_date = date_str
            lines.append(f"{friendly_date}: {', '.join(times)}")

        return "\n".join(lines)
