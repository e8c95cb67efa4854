"""Lecture schedule repository for database operations."""

from datetime import date
from typing import List
from .base import BaseRepository
from ..database_models.lab import LectureScheduleDO


SCHEDULE_COLUMNS = """
    id, title, scheduled_date, lab_name, start_time, end_time,
    instructor, description, created_at
"""


class ScheduleRepository(BaseRepository):
    """Repository for lecture schedules. Failures are logged and re-raised."""

    def create(self, schedule: LectureScheduleDO) -> LectureScheduleDO:
        """
        Insert a schedule row.

        Args:
            schedule: LectureScheduleDO instance; its id is ignored

        Returns:
            The stored schedule with id and created_at filled in
        """
        try:
            rows = self._fetch_dicts(f"""
                INSERT INTO lecture_schedules (title, scheduled_date, lab_name, start_time, end_time,
                                               instructor, description)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                RETURNING {SCHEDULE_COLUMNS}
            """, [
                schedule.title, schedule.scheduled_date, schedule.lab_name, schedule.start_time,
                schedule.end_time, schedule.instructor, schedule.description
            ])
            self.conn.commit()
            created = LectureScheduleDO(**rows[0])
            self.logger.info(f"Created schedule record: {created.id} ({created.title})")
            return created
        except Exception as e:
            self.logger.error(f"Failed to create schedule {schedule.title}: {e}")
            raise

    def list_by_date(self, scheduled_date: date) -> List[LectureScheduleDO]:
        """Schedules on a date ordered by start time."""
        try:
            rows = self._fetch_dicts(f"""
                SELECT {SCHEDULE_COLUMNS} FROM lecture_schedules
                WHERE scheduled_date = ?
                ORDER BY start_time, title
            """, [scheduled_date])
            return [LectureScheduleDO(**row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed to list schedules for {scheduled_date}: {e}")
            raise
