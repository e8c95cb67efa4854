"""Lecture schedule API models."""

from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class CreateScheduleRequest(BaseModel):
    """Request model for creating a lecture schedule."""

    title: str = Field(description="Lecture title", min_length=1, max_length=200)
    scheduled_date: date = Field(description="Lecture date")
    lab_name: Optional[str] = Field(None, description="Lab room", max_length=100)
    start_time: Optional[str] = Field(None, description="Start time (HH:MM)", pattern=r"^\d{2}:\d{2}$")
    end_time: Optional[str] = Field(None, description="End time (HH:MM)", pattern=r"^\d{2}:\d{2}$")
    instructor: Optional[str] = Field(None, description="Instructor name", max_length=100)
    description: Optional[str] = Field(None, description="Description", max_length=1000)


class ScheduleResponse(BaseModel):
    """Response model for a lecture schedule."""

    id: int = Field(description="Schedule ID")
    title: str = Field(description="Lecture title")
    scheduled_date: date = Field(description="Lecture date")
    lab_name: Optional[str] = Field(None, description="Lab room")
    start_time: Optional[str] = Field(None, description="Start time")
    end_time: Optional[str] = Field(None, description="End time")
    instructor: Optional[str] = Field(None, description="Instructor name")
    description: Optional[str] = Field(None, description="Description")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")


class ScheduleListResponse(BaseModel):
    """Response model for listing schedules."""

    scheduled_date: date = Field(description="Date listed")
    schedules: List[ScheduleResponse] = Field(description="Schedules ordered by start time")
    total: int = Field(description="Number of schedules")
