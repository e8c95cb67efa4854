"""User, borrowing and schedule database models."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass
class UserDO:
    """User data object - maps to users table."""

    id: int
    name: str
    role: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class BorrowingDO:
    """Borrowing data object - maps to borrowings table."""

    id: int
    borrower_id: int
    status: str
    chemical_id: Optional[int] = None
    equipment_id: Optional[int] = None
    quantity: Optional[float] = None
    purpose: Optional[str] = None
    borrow_date: Optional[date] = None
    return_date: Optional[date] = None
    created_at: Optional[datetime] = None
    # Joined display columns
    item_name: Optional[str] = None
    borrower_name: Optional[str] = None


@dataclass
class LectureScheduleDO:
    """Lecture schedule data object - maps to lecture_schedules table."""

    id: int
    title: str
    scheduled_date: date
    lab_name: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    instructor: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
