"""Chemical usage API models."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class RecordUsageRequest(BaseModel):
    """Request model for recording chemical usage."""

    user_id: int = Field(description="User recording the usage", gt=0)
    quantity_used: float = Field(description="Amount consumed, in the chemical's unit", gt=0)
    purpose: Optional[str] = Field(None, description="Why the chemical was used", max_length=500)
    notes: Optional[str] = Field(None, description="Free-text notes", max_length=1000)
    experiment_reference: Optional[str] = Field(None, description="Experiment reference", max_length=200)
    usage_date: Optional[datetime] = Field(None, description="When it was used, defaults to now")


class UsageLogResponse(BaseModel):
    """Response model for a usage log entry."""

    id: int = Field(description="Usage log ID")
    chemical_id: int = Field(description="Chemical ID")
    user_id: int = Field(description="User ID")
    quantity_used: float = Field(description="Amount consumed")
    remaining_quantity: float = Field(description="Stock left after this usage")
    usage_date: datetime = Field(description="When it was used")
    purpose: Optional[str] = Field(None, description="Purpose")
    notes: Optional[str] = Field(None, description="Notes")
    experiment_reference: Optional[str] = Field(None, description="Experiment reference")


class UsageLogListResponse(BaseModel):
    """Response model for listing usage logs."""

    chemical_id: int = Field(description="Chemical ID")
    logs: List[UsageLogResponse] = Field(description="Usage logs, newest first")
    total: int = Field(description="Number of logs returned")
