"""Text formatting for chat replies."""

from datetime import date
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar

from ...db.database_models.inventory import ChemicalDO, EquipmentDO
from ...db.database_models.lab import BorrowingDO, LectureScheduleDO


T = TypeVar("T")

DEFAULT_LIST_LIMIT = 10


def format_number(value: Optional[float]) -> str:
    if value is None:
        return "0"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def format_quantity(quantity: Optional[float], unit: Optional[str]) -> str:
    """e.g. (100.0, "g") -> "100 g"."""
    amount = format_number(quantity)
    return f"{amount} {unit}" if unit else amount


def format_date(value: Optional[date]) -> str:
    return value.isoformat() if value else "not set"


def bullet_list(items: Iterable[T], line: Callable[[T], str], limit: int = DEFAULT_LIST_LIMIT) -> str:
    """Render up to `limit` bullets, noting how many were left out."""
    items = list(items)
    lines = [f"• {line(item)}" for item in items[:limit]]
    if len(items) > limit:
        lines.append(f"...and {len(items) - limit} more")
    return "\n".join(lines)


def chemical_line(chemical: ChemicalDO) -> str:
    location = f" ({chemical.storage_location})" if chemical.storage_location else ""
    return f"**{chemical.name}**: {format_quantity(chemical.quantity, chemical.unit)}{location}"


def chemical_expiry_line(chemical: ChemicalDO) -> str:
    return f"**{chemical.name}**: expires {format_date(chemical.expiry_date)}"


def equipment_line(equipment: EquipmentDO) -> str:
    location = f" ({equipment.location})" if equipment.location else ""
    return f"**{equipment.name}**: {equipment.status}{location}"


def booking_line(booking: BorrowingDO) -> str:
    who = f", {booking.borrower_name}" if booking.borrower_name else ""
    return (
        f"{format_date(booking.borrow_date)} to {format_date(booking.return_date)} "
        f"({booking.status}{who})"
    )


def borrowing_line(borrowing: BorrowingDO) -> str:
    item = borrowing.item_name or "Unknown item"
    quantity = f" x {format_number(borrowing.quantity)}" if borrowing.quantity else ""
    return f"**{item}**{quantity}: {borrowing.status} (requested {format_date(borrowing.borrow_date)})"


def schedule_line(schedule: LectureScheduleDO) -> str:
    times = ""
    if schedule.start_time:
        times = f"{schedule.start_time}-{schedule.end_time}: " if schedule.end_time else f"{schedule.start_time}: "
    extras = [part for part in (schedule.lab_name, schedule.instructor) if part]
    suffix = f" ({', '.join(extras)})" if extras else ""
    return f"{times}**{schedule.title}**{suffix}"


def chemical_details(chemical: ChemicalDO, low_stock_threshold: float, today: date) -> str:
    """Full description of a chemical."""
    lines = [f"**{chemical.name}**", ""]
    lines.append(f"Quantity: {format_quantity(chemical.quantity, chemical.unit)}")
    if chemical.category:
        lines.append(f"Category: {chemical.category}")
    if chemical.storage_location:
        lines.append(f"Location: {chemical.storage_location}")
    if chemical.expiry_date:
        status = " (EXPIRED)" if chemical.expiry_date < today else ""
        lines.append(f"Expiry date: {format_date(chemical.expiry_date)}{status}")

    properties = []
    if chemical.cas_number:
        properties.append(f"CAS {chemical.cas_number}")
    if chemical.molecular_formula:
        properties.append(f"formula {chemical.molecular_formula}")
    if chemical.molecular_weight:
        properties.append(f"MW {format_number(chemical.molecular_weight)} g/mol")
    if properties:
        lines.append(f"Properties: {', '.join(properties)}")

    if chemical.hazard_class:
        lines.append(f"Hazard class: {chemical.hazard_class}")
    if chemical.storage_conditions:
        lines.append(f"Storage: {chemical.storage_conditions}")
    if chemical.safety_precautions:
        lines.append(f"Safety: {chemical.safety_precautions}")

    if 0 < (chemical.quantity or 0) <= low_stock_threshold:
        lines.extend(["", "Stock is low. Consider requesting a restock."])

    lines.extend(["", f'Ask "What about its safety?" or "Borrow {chemical.name}" to continue.'])
    return "\n".join(lines)


def equipment_details(equipment: EquipmentDO, today: date) -> str:
    """Full description of an equipment item."""
    lines = [f"**{equipment.name}**", ""]
    lines.append(f"Status: {equipment.status}")
    if equipment.condition:
        lines.append(f"Condition: {equipment.condition}")
    if equipment.category:
        lines.append(f"Category: {equipment.category}")
    if equipment.location:
        lines.append(f"Location: {equipment.location}")

    maker = " ".join(part for part in (equipment.manufacturer, equipment.model) if part)
    if maker:
        lines.append(f"Model: {maker}")
    if equipment.serial_number:
        lines.append(f"Serial number: {equipment.serial_number}")

    if equipment.last_maintenance_date:
        lines.append(f"Last maintenance: {format_date(equipment.last_maintenance_date)}")
        if equipment.maintenance_schedule:
            elapsed = (today - equipment.last_maintenance_date).days
            if elapsed >= equipment.maintenance_schedule:
                lines.append(f"Maintenance overdue by {elapsed - equipment.maintenance_schedule} days")
    if equipment.next_calibration_date:
        overdue = " (DUE)" if equipment.next_calibration_date <= today else ""
        lines.append(f"Next calibration: {format_date(equipment.next_calibration_date)}{overdue}")

    if equipment.status == "available":
        lines.extend(["", f'Say "Book the {equipment.name} for tomorrow" to reserve it.'])
    return "\n".join(lines)


def suggestion_block(names: Sequence[str]) -> str:
    if not names:
        return ""
    return "\n\nDid you mean:\n" + "\n".join(f"• {name}" for name in names)


def unique_names(items: Iterable, limit: int = 3) -> List[str]:
    names: List[str] = []
    for item in items:
        if item.name not in names:
            names.append(item.name)
        if len(names) >= limit:
            break
    return names
