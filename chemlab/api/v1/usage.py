"""Chemical usage REST API routes - V1."""

from fastapi import APIRouter, HTTPException, Depends, Query

from ...models.usage import RecordUsageRequest, UsageLogListResponse, UsageLogResponse
from ...db.database_models.inventory import ChemicalUsageLogDO
from ...services import LabDataService
from ...utils.validation import (
    ChemicalNotFoundError,
    InsufficientQuantityError,
    ValidationError,
    validate_quantity,
)

router = APIRouter(prefix="/api/v1/chemicals", tags=["Chemical Usage"])

# Lab data service (set by main.py)
lab_data: LabDataService = None


def get_lab_data() -> LabDataService:
    """Dependency to get the lab data service."""
    if lab_data is None:
        raise HTTPException(status_code=500, detail="Lab data service not initialized")
    return lab_data


def _to_response(log: ChemicalUsageLogDO) -> UsageLogResponse:
    """Convert ChemicalUsageLogDO to UsageLogResponse."""
    return UsageLogResponse(
        id=log.id,
        chemical_id=log.chemical_id,
        user_id=log.user_id,
        quantity_used=log.quantity_used,
        remaining_quantity=log.remaining_quantity,
        usage_date=log.usage_date,
        purpose=log.purpose,
        notes=log.notes,
        experiment_reference=log.experiment_reference
    )


@router.post("/{chemical_id}/usage", response_model=UsageLogResponse, status_code=201)
async def record_usage(
    chemical_id: int,
    request: RecordUsageRequest,
    data: LabDataService = Depends(get_lab_data)
):
    """Record usage of a chemical and decrement its stock."""
    try:
        quantity = validate_quantity(request.quantity_used)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)

    user = data.get_user(request.user_id)
    if user.failed:
        raise HTTPException(status_code=503, detail="Failed to validate user ID")
    if user.value is None:
        raise HTTPException(status_code=404, detail=f"User not found: {request.user_id}")

    try:
        log = data.record_chemical_usage(
            chemical_id,
            request.user_id,
            quantity,
            purpose=request.purpose,
            notes=request.notes,
            experiment_reference=request.experiment_reference,
            usage_date=request.usage_date
        )
    except ChemicalNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InsufficientQuantityError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to record usage: {e}")

    return _to_response(log)


@router.get("/{chemical_id}/usage", response_model=UsageLogListResponse)
async def list_usage(
    chemical_id: int,
    limit: int = Query(50, ge=1, le=500, description="Maximum entries"),
    data: LabDataService = Depends(get_lab_data)
):
    """Usage history of a chemical, newest first."""
    chemical = data.get_chemical(chemical_id)
    if chemical.failed:
        raise HTTPException(status_code=500, detail="Failed to look up chemical")
    if chemical.value is None:
        raise HTTPException(status_code=404, detail=f"Chemical {chemical_id} not found")

    logs = data.usage_history(chemical_id, limit)
    if logs.failed:
        raise HTTPException(status_code=500, detail="Failed to load usage history")

    return UsageLogListResponse(
        chemical_id=chemical_id,
        logs=[_to_response(log) for log in logs.value],
        total=len(logs.value)
    )
