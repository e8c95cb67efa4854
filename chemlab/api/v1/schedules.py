"""Lecture schedule REST API routes - V1."""

import asyncio
import json
from datetime import date
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.responses import StreamingResponse

from ...models.schedule import CreateScheduleRequest, ScheduleListResponse, ScheduleResponse
from ...db.database_models.lab import LectureScheduleDO
from ...services import LabDataService, ScheduleUpdateRegistry
from ...services.notifications import is_close_event
from ...utils.logger import get_app_logger

router = APIRouter(prefix="/api/v1/schedules", tags=["Schedules"])

logger = get_app_logger()

# Services (set by main.py)
lab_data: LabDataService = None
schedule_registry: ScheduleUpdateRegistry = None

KEEPALIVE_SECONDS = 15.0


def get_lab_data() -> LabDataService:
    """Dependency to get the lab data service."""
    if lab_data is None:
        raise HTTPException(status_code=500, detail="Lab data service not initialized")
    return lab_data


def get_schedule_registry() -> ScheduleUpdateRegistry:
    """Dependency to get the schedule update registry."""
    if schedule_registry is None:
        raise HTTPException(status_code=500, detail="Schedule notifications not initialized")
    return schedule_registry


def _to_response(schedule: LectureScheduleDO) -> ScheduleResponse:
    """Convert LectureScheduleDO to ScheduleResponse."""
    return ScheduleResponse(
        id=schedule.id,
        title=schedule.title,
        scheduled_date=schedule.scheduled_date,
        lab_name=schedule.lab_name,
        start_time=schedule.start_time,
        end_time=schedule.end_time,
        instructor=schedule.instructor,
        description=schedule.description,
        created_at=schedule.created_at
    )


@router.get("", response_model=ScheduleListResponse)
async def list_schedules(
    scheduled_date: Optional[date] = Query(None, alias="date", description="Date to list, defaults to today"),
    data: LabDataService = Depends(get_lab_data)
):
    """List lecture schedules for a date."""
    day = scheduled_date or data.today()
    result = data.schedules_for_date(day)
    if result.failed:
        raise HTTPException(status_code=500, detail="Failed to load schedules")

    return ScheduleListResponse(
        scheduled_date=day,
        schedules=[_to_response(s) for s in result.value],
        total=len(result.value)
    )


@router.post("", response_model=ScheduleResponse, status_code=201)
async def create_schedule(
    request: CreateScheduleRequest,
    data: LabDataService = Depends(get_lab_data),
    registry: ScheduleUpdateRegistry = Depends(get_schedule_registry)
):
    """Create a lecture schedule and notify live subscribers."""
    if request.start_time and request.end_time and request.end_time <= request.start_time:
        raise HTTPException(status_code=400, detail="end_time must be after start_time")

    schedule = LectureScheduleDO(
        id=0,
        title=request.title,
        scheduled_date=request.scheduled_date,
        lab_name=request.lab_name,
        start_time=request.start_time,
        end_time=request.end_time,
        instructor=request.instructor,
        description=request.description
    )
    try:
        created = data.create_schedule(schedule)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to create schedule: {e}")

    response = _to_response(created)
    registry.broadcast("schedule_created", response.model_dump(mode="json"))
    return response


@router.get("/events")
async def schedule_events(registry: ScheduleUpdateRegistry = Depends(get_schedule_registry)):
    """Stream schedule updates as server-sent events."""
    queue = registry.register()

    async def generate():
        try:
            yield ": connected\n\n"
            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                if is_close_event(event):
                    break
                yield f"event: {event['type']}\ndata: {json.dumps(event)}\n\n"
        finally:
            registry.unregister(queue)

    return StreamingResponse(generate(), media_type="text/event-stream")
