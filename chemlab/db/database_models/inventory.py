"""Inventory database models."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass
class ChemicalDO:
    """Chemical data object - maps to chemicals table."""

    id: int
    name: str
    quantity: float = 0.0
    unit: Optional[str] = None
    category: Optional[str] = None
    storage_location: Optional[str] = None
    expiry_date: Optional[date] = None
    hazard_class: Optional[str] = None
    storage_conditions: Optional[str] = None
    safety_precautions: Optional[str] = None
    cas_number: Optional[str] = None
    molecular_formula: Optional[str] = None
    molecular_weight: Optional[float] = None
    created_at: Optional[datetime] = None


@dataclass
class EquipmentDO:
    """Equipment data object - maps to equipment table."""

    id: int
    name: str
    status: str = "available"
    category: Optional[str] = None
    condition: Optional[str] = None
    location: Optional[str] = None
    maintenance_schedule: Optional[int] = None
    last_maintenance_date: Optional[date] = None
    next_calibration_date: Optional[date] = None
    serial_number: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class ChemicalUsageLogDO:
    """Usage log data object - maps to chemical_usage_logs table."""

    id: int
    chemical_id: int
    user_id: int
    quantity_used: float
    remaining_quantity: float
    usage_date: datetime
    purpose: Optional[str] = None
    notes: Optional[str] = None
    experiment_reference: Optional[str] = None
