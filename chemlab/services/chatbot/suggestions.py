"""Quick actions per role and follow-up suggestions for a reply."""

from typing import Dict, List


MAX_SUGGESTIONS = 4
FALLBACK_SUGGESTIONS = 3

STAFF_ROLES = ("admin", "technician")


def _action(display_text: str, icon: str, message: str) -> Dict[str, str]:
    return {"display_text": display_text, "icon": icon, "message": message}


QUICK_ACTIONS: Dict[str, List[Dict[str, str]]] = {
    "technician": [
        _action("Inventory Alerts", "warning", "What inventory alerts do we have?"),
        _action("Equipment Status", "build", "Show equipment maintenance status"),
        _action("Pending Requests", "assignment", "Show my borrowing request status"),
        _action("Safety Protocols", "security", "Show safety procedures"),
    ],
    "admin": [
        _action("System Overview", "analytics", "Show system status overview"),
        _action("Usage Statistics", "info", "Show usage statistics"),
        _action("All Alerts", "warning", "Show all inventory alerts"),
        _action("Maintenance Schedule", "build", "What equipment needs maintenance?"),
    ],
    "borrower": [
        _action("Available Chemicals", "science", "What chemicals are available?"),
        _action("Equipment Booking", "build", "Show available equipment for booking"),
        _action("Today's Schedule", "calendar_today", "What is on the lab schedule today?"),
        _action("Safety Information", "security", "Show safety procedures and guidelines"),
    ],
}


def get_quick_actions(role: str) -> List[Dict[str, str]]:
    """Default quick actions for a role; unknown roles get the borrower set."""
    return [dict(action) for action in QUICK_ACTIONS.get(role, QUICK_ACTIONS["borrower"])]


def generate_suggested_actions(response: str, role: str) -> List[Dict[str, str]]:
    """
    Suggest follow-up actions based on what a reply talks about.

    Args:
        response: Reply text
        role: Caller's role

    Returns:
        At most four suggestions; the first three quick actions when nothing fits
    """
    text = response.lower()
    is_staff = role in STAFF_ROLES
    suggestions: List[Dict[str, str]] = []

    if "low stock" in text or "expiring" in text:
        suggestions.append(_action("View Details", "info", "Show me more details about these items"))
        if is_staff:
            suggestions.append(_action("Create Purchase Order", "assignment", "Help me create a purchase order"))

    if "available" in text and "chemical" in text:
        suggestions.append(_action("Borrow Chemical", "assignment", "I want to borrow a chemical"))
        suggestions.append(_action("Safety Info", "security", "Show safety information for chemicals"))

    if "equipment" in text and "available" in text:
        suggestions.append(_action("Book Equipment", "build", "I want to book equipment"))
        suggestions.append(_action("Check Schedule", "calendar_today", "What is on the lab schedule today?"))

    if ("maintenance" in text or "calibration" in text) and is_staff:
        suggestions.append(_action("Schedule Maintenance", "build", "What equipment needs maintenance?"))

    if not suggestions:
        return get_quick_actions(role)[:FALLBACK_SUGGESTIONS]
    return suggestions[:MAX_SUGGESTIONS]
