"""Response handlers, one per intent.

Handlers read through ``LabDataService`` and treat a failed fetch
differently from an empty one: failures produce an "I couldn't check"
reply instead of claiming the inventory is empty.
"""

import re
from datetime import timedelta
from typing import Callable, Dict, List, Optional

from ...config import Settings, settings as default_settings
from ...db.database_models.inventory import ChemicalDO, EquipmentDO
from ...utils.logger import get_app_logger
from ..lab_data import FetchResult, LabDataService
from . import intents
from .context import ChatTurn, PendingAction
from .extractors import (
    extract_availability_item,
    extract_booking_target,
    extract_borrow_item,
    extract_compatibility_pair,
    extract_detail_subject,
    extract_protocol_subject,
    extract_purchase_item,
    extract_safety_subject,
    mentions_reference,
    parse_quantity,
)
from .formatters import (
    booking_line,
    borrowing_line,
    bullet_list,
    chemical_details,
    chemical_expiry_line,
    chemical_line,
    equipment_details,
    equipment_line,
    format_date,
    format_number,
    format_quantity,
    schedule_line,
    suggestion_block,
    unique_names,
)
from .knowledge import (
    GENERAL_SAFETY,
    GENERIC_SAFETY_SUBJECTS,
    PROTOCOLS,
    SAFETY_TOPICS,
    find_protocol,
    hazard_groups,
    incompatible_pairs,
)


AFFIRMATIVE = re.compile(r"^\s*(?:yes|yeah|yep|yup|sure|ok|okay|please do|go ahead|confirm|do it|y)\b")
NEGATIVE = re.compile(r"^\s*(?:no|nope|nah|cancel|never mind|nevermind|stop|don(?:'|&#x27;)t|dont|n)\b")
FOLLOW_UP_WORDS = ("how much", "quantity", "where", "location", "expir", "stock", "more", "status", "condition")
CATEGORY_PATTERN = re.compile(r"\bcategory:?\s+([a-z][a-z \-]*?)\s*(?:\?|$|\.)|\bin (?:the )?([a-z][a-z \-]*?) category\b")

UNAVAILABLE = "I couldn't check {what} right now. Please try again in a moment."


def _unavailable(what: str) -> str:
    return UNAVAILABLE.format(what=what)


class ResponseHandlers:
    """Builds replies for each intent."""

    def __init__(self, lab_data: LabDataService, config: Optional[Settings] = None):
        self.lab_data = lab_data
        self.config = config or default_settings
        self.logger = get_app_logger()

    def for_intent(self, intent: str) -> Callable[[ChatTurn], str]:
        """Handler function for an intent name from the rule table."""
        handlers: Dict[str, Callable[[ChatTurn], str]] = {
            intents.DETAILS: self.details,
            intents.AVAILABILITY: self.availability,
            intents.ALERTS: self.inventory_alerts,
            intents.MAINTENANCE: self.maintenance_status,
            intents.BOOKING: self.booking,
            intents.PURCHASE: self.purchase_request,
            intents.PROTOCOL: self.protocol,
            intents.COMPATIBILITY: self.compatibility,
            intents.BORROW: self.borrow,
            intents.BORROW_STATUS: self.borrow_status,
            intents.SCHEDULE: self.schedule,
            intents.SAFETY: self.safety,
            intents.HISTORY: self.history,
            intents.HELP: self.help,
        }
        return handlers[intent]

    # Lookups shared by several handlers

    def _remember_chemical(self, turn: ChatTurn, chemical: ChemicalDO, topic: str) -> None:
        turn.remember(last_chemical=chemical.name, last_chemical_id=chemical.id, last_topic=topic)

    def _remember_equipment(self, turn: ChatTurn, equipment: EquipmentDO, topic: str) -> None:
        turn.remember(last_equipment=equipment.name, last_equipment_id=equipment.id, last_topic=topic)

    def _context_chemical(self, turn: ChatTurn) -> FetchResult[Optional[ChemicalDO]]:
        ctx = turn.context
        if ctx.last_chemical_id:
            result = self.lab_data.get_chemical(ctx.last_chemical_id)
            if result.failed or result.value:
                return result
        if ctx.last_chemical:
            return self.lab_data.find_chemical_flexible(ctx.last_chemical)
        return FetchResult.ok(None)

    def _context_equipment(self, turn: ChatTurn) -> FetchResult[Optional[EquipmentDO]]:
        ctx = turn.context
        if ctx.last_equipment_id:
            result = self.lab_data.get_equipment(ctx.last_equipment_id)
            if result.failed or result.value:
                return result
        if ctx.last_equipment:
            return self.lab_data.find_equipment_flexible(ctx.last_equipment)
        return FetchResult.ok(None)

    def _similar_names(self, name: str) -> List[str]:
        """Up to three inventory names sharing a word with `name`."""
        matches = []
        for token in re.findall(r"[a-z0-9]{3,}", name.lower()):
            for result in (self.lab_data.search_chemicals(token), self.lab_data.search_equipment(token)):
                if not result.failed and result.value:
                    matches.extend(result.value)
        return unique_names(matches, limit=3)

    def _chemical_reply(self, turn: ChatTurn, chemical: ChemicalDO) -> str:
        self._remember_chemical(turn, chemical, "chemical_details")
        return chemical_details(chemical, self.config.low_stock_threshold, self.lab_data.today())

    def _equipment_reply(self, turn: ChatTurn, equipment: EquipmentDO) -> str:
        self._remember_equipment(turn, equipment, "equipment_details")
        return equipment_details(equipment, self.lab_data.today())

    # Intent handlers

    def details(self, turn: ChatTurn) -> str:
        """Details of a named chemical or equipment item."""
        name = extract_detail_subject(turn.message)

        if name is None:
            return self._context_details(turn)

        lookups = [
            (self.lab_data.find_chemical_flexible, self._chemical_reply),
            (self.lab_data.find_equipment_flexible, self._equipment_reply),
        ]
        if intents.mentions_equipment(turn.lower) and not intents.mentions_chemical(turn.lower):
            lookups.reverse()

        failures = 0
        for find, reply in lookups:
            result = find(name)
            if result.failed:
                failures += 1
                continue
            if result.value:
                return reply(turn, result.value)

        if failures == len(lookups):
            return _unavailable("the inventory")

        turn.remember(pending_action=PendingAction("find_alternative", {"name": name}))
        return (
            f'I couldn\'t find details for "{name}" in the inventory.'
            f"{suggestion_block(self._similar_names(name))}\n\n"
            'Would you like me to look for alternatives? You can also ask "What chemicals are available?"'
        )

    def _context_details(self, turn: ChatTurn) -> str:
        chemical = self._context_chemical(turn)
        if chemical.value:
            return self._chemical_reply(turn, chemical.value)
        equipment = self._context_equipment(turn)
        if equipment.value:
            return self._equipment_reply(turn, equipment.value)
        if chemical.failed or equipment.failed:
            return _unavailable("the inventory")
        return self._ask_which(turn, "details")

    def _ask_which(self, turn: ChatTurn, purpose: str) -> str:
        turn.remember(awaiting_clarification=purpose)
        return "Which chemical or equipment do you mean? Please include its name."

    def availability(self, turn: ChatTurn) -> str:
        """Chemical or equipment availability, for one item or the whole inventory."""
        item = extract_availability_item(turn.message)
        if item and item not in ("chemical", "chemicals", "equipment", "anything"):
            specific = self._item_availability(turn, item)
            if specific:
                return specific

        category = self._category_filter(turn.lower)
        if intents.mentions_chemical(turn.lower) or not intents.mentions_equipment(turn.lower):
            return self._chemical_availability(turn, category)
        return self._equipment_availability(turn, category)

    def _category_filter(self, text: str) -> Optional[str]:
        match = CATEGORY_PATTERN.search(text)
        if not match:
            return None
        return (match.group(1) or match.group(2)).strip()

    def _item_availability(self, turn: ChatTurn, name: str) -> Optional[str]:
        equipment = self.lab_data.find_equipment_flexible(name)
        if equipment.value:
            return self._equipment_booking_state(turn, equipment.value, self.lab_data.today())
        chemical = self.lab_data.find_chemical_flexible(name)
        if chemical.value:
            self._remember_chemical(turn, chemical.value, "availability")
            amount = format_quantity(chemical.value.quantity, chemical.value.unit)
            if (chemical.value.quantity or 0) <= 0:
                return f"**{chemical.value.name}** is out of stock. Request restock through your lab technician."
            return f"**{chemical.value.name}** is in stock: {amount} available."
        if equipment.failed and chemical.failed:
            return _unavailable("availability")
        return None

    def _chemical_availability(self, turn: ChatTurn, category: Optional[str]) -> str:
        result = (
            self.lab_data.chemicals_by_category(category) if category else self.lab_data.list_chemicals()
        )
        if result.failed:
            return _unavailable("the chemical inventory")

        chemicals = result.value or []
        if not chemicals:
            scope = f" in the {category} category" if category else ""
            return (
                f"**No chemicals found{scope}**\n\n"
                "The chemical inventory is currently empty. "
                "Request restock through your lab technician or administrator."
            )

        in_stock = [c for c in chemicals if (c.quantity or 0) > 0]
        title = f"**Available Chemicals{f' ({category})' if category else ''}** ({len(in_stock)} in stock)"
        reply = f"{title}\n\n{bullet_list(in_stock, chemical_line, limit=15)}"
        out_of_stock = len(chemicals) - len(in_stock)
        if out_of_stock:
            reply += f"\n\n{out_of_stock} chemical(s) are out of stock."
        turn.remember(last_topic="chemical_availability")
        return reply + '\n\nAsk "What are the details of <name>?" for more.'

    def _equipment_availability(self, turn: ChatTurn, category: Optional[str]) -> str:
        if category:
            result = self.lab_data.equipment_by_category(category)
            if result.failed:
                return _unavailable("the equipment list")
            available = [e for e in result.value or [] if e.status == "available"]
            total = len(result.value or [])
        else:
            every = self.lab_data.list_equipment()
            if every.failed:
                return _unavailable("the equipment list")
            total = len(every.value or [])
            if total == 0:
                available = []
            else:
                result = self.lab_data.available_equipment()
                if result.failed:
                    return _unavailable("equipment availability")
                available = result.value or []

        if total == 0:
            return (
                "**No equipment registered**\n\n"
                "There is no equipment in the inventory yet. "
                "Request new equipment through your lab administrator."
            )
        if not available:
            return f"All {total} equipment items are currently in use or under maintenance."

        turn.remember(last_topic="equipment_availability")
        return (
            f"**Available Equipment** ({len(available)} of {total})\n\n"
            f"{bullet_list(available, equipment_line, limit=15)}\n\n"
            'Say "Book the <name> for tomorrow" to reserve an item.'
        )

    def inventory_alerts(self, turn: ChatTurn) -> str:
        """Low stock, expiring and expired chemicals."""
        low = self.lab_data.low_stock_chemicals()
        expiring = self.lab_data.expiring_chemicals()
        expired = self.lab_data.expired_chemicals()

        if low.failed and expiring.failed and expired.failed:
            return _unavailable("inventory alerts")

        sections = []
        if low.failed:
            sections.append(_unavailable("low stock levels"))
        elif low.value:
            lines = bullet_list(low.value, chemical_line)
            sections.append(f"**Low Stock Chemicals** ({len(low.value)})\n{lines}")
        if expiring.failed:
            sections.append(_unavailable("expiry dates"))
        elif expiring.value:
            lines = bullet_list(expiring.value, chemical_expiry_line)
            sections.append(
                f"**Expiring Soon** (next {self.config.expiry_warning_days} days, {len(expiring.value)})\n{lines}"
            )
        if not expired.failed and expired.value:
            lines = bullet_list(expired.value, chemical_expiry_line)
            sections.append(f"**Expired** ({len(expired.value)})\n{lines}")

        turn.remember(last_topic="inventory_alerts")
        if not sections:
            return "**No Inventory Alerts**\n\nAll stock levels and expiry dates look good."

        footer = "\n\nSay \"Request purchase of <name>\" to restock an item." if turn.is_staff else ""
        return "**Inventory Alerts**\n\n" + "\n\n".join(sections) + footer

    def maintenance_status(self, turn: ChatTurn) -> str:
        """Equipment due for maintenance or calibration."""
        maintenance = self.lab_data.maintenance_due()
        calibration = self.lab_data.calibration_due()
        if maintenance.failed and calibration.failed:
            return _unavailable("maintenance records")

        today = self.lab_data.today()
        sections = []
        if maintenance.failed:
            sections.append(_unavailable("maintenance schedules"))
        elif maintenance.value:
            def overdue(item: EquipmentDO) -> str:
                elapsed = (today - item.last_maintenance_date).days
                return f"**{item.name}**: last serviced {format_date(item.last_maintenance_date)} ({elapsed} days ago)"
            sections.append(f"**Maintenance Due** ({len(maintenance.value)})\n{bullet_list(maintenance.value, overdue)}")
        if calibration.failed:
            sections.append(_unavailable("calibration dates"))
        elif calibration.value:
            lines = bullet_list(
                calibration.value,
                lambda item: f"**{item.name}**: calibration due {format_date(item.next_calibration_date)}"
            )
            sections.append(f"**Calibration Due** ({len(calibration.value)})\n{lines}")

        turn.remember(last_topic="maintenance")
        if not sections:
            return "**Equipment Maintenance**\n\nAll equipment is up to date on maintenance and calibration."
        return "**Equipment Maintenance Status**\n\n" + "\n\n".join(sections)

    def booking(self, turn: ChatTurn) -> str:
        """Check whether equipment can be booked and start the booking flow."""
        target = extract_booking_target(turn.message)
        found: FetchResult[Optional[EquipmentDO]]
        if target is None:
            found = self._context_equipment(turn)
            if not found.failed and found.value is None:
                return self._ask_booking_target(turn)
        else:
            found = self.lab_data.find_equipment_flexible(target)

        if found.failed:
            return _unavailable("the equipment list")
        if found.value is None:
            available = self.lab_data.available_equipment()
            names = [] if available.failed else unique_names(available.value or [], limit=5)
            listing = "\n\nCurrently available:\n" + "\n".join(f"• {n}" for n in names) if names else ""
            return f'I couldn\'t find equipment called "{target}".{listing}'

        day = self.lab_data.today()
        if "tomorrow" in turn.lower:
            day += timedelta(days=1)
        return self._equipment_booking_state(turn, found.value, day)

    def _ask_booking_target(self, turn: ChatTurn) -> str:
        turn.remember(awaiting_clarification="booking")
        available = self.lab_data.available_equipment()
        if available.failed or not available.value:
            return "Which equipment would you like to book?"
        return (
            "Which equipment would you like to book?\n\n"
            f"{bullet_list(available.value, equipment_line, limit=8)}"
        )

    def _equipment_booking_state(self, turn: ChatTurn, equipment: EquipmentDO, day) -> str:
        self._remember_equipment(turn, equipment, "booking")

        if equipment.status == "maintenance":
            turn.remember(pending_action=PendingAction(
                "find_alternative", {"name": equipment.name, "category": equipment.category}
            ))
            return (
                f"**{equipment.name}** is currently under maintenance and cannot be booked.\n\n"
                "Would you like me to find an alternative?"
            )

        free = self.lab_data.check_equipment_availability(equipment.id, day, day)
        if free.failed:
            return _unavailable(f"the booking calendar for {equipment.name}")

        if free.value:
            turn.remember(pending_action=PendingAction("book_equipment", {
                "equipment_id": equipment.id,
                "equipment_name": equipment.name,
                "date": day.isoformat(),
            }))
            location = f"\nLocation: {equipment.location}" if equipment.location else ""
            return (
                f"**{equipment.name}** is available for booking on {format_date(day)}.{location}\n\n"
                "To complete the booking, please tell me:\n"
                "• Start time\n"
                "• Duration\n"
                "• Purpose of use\n\n"
                "Shall I go ahead?"
            )

        bookings = self.lab_data.upcoming_bookings(equipment.id)
        listing = ""
        if not bookings.failed and bookings.value:
            listing = f"\n\nUpcoming bookings:\n{bullet_list(bookings.value, booking_line, limit=5)}"
        turn.remember(pending_action=PendingAction(
            "find_alternative", {"name": equipment.name, "category": equipment.category}
        ))
        return (
            f"**{equipment.name}** is already booked on {format_date(day)}.{listing}\n\n"
            "Would you like me to find an alternative?"
        )

    def purchase_request(self, turn: ChatTurn) -> str:
        """Draft a purchase request and ask for the quantity."""
        item = extract_purchase_item(turn.message)
        if item is None and turn.context.last_chemical:
            item = turn.context.last_chemical
        if item is None:
            turn.remember(awaiting_clarification="purchase")
            return "What would you like to purchase? Please include the chemical or equipment name."

        stock = ""
        existing = self.lab_data.find_chemical_flexible(item)
        if existing.value:
            self._remember_chemical(turn, existing.value, "purchase")
            stock = f"\nCurrent stock: {format_quantity(existing.value.quantity, existing.value.unit)}"

        turn.remember(
            pending_action=PendingAction("purchase_request", {"item_name": item}),
            awaiting_quantity=True,
            last_topic="purchase",
        )
        return (
            "**Purchase Request Created**\n\n"
            f"Item: {item}{stock}\n\n"
            f'How much {item} do you need? Reply with a quantity such as "500 ml".'
        )

    def protocol(self, turn: ChatTurn) -> str:
        """Suggest a lab protocol and check its equipment."""
        subject = extract_protocol_subject(turn.message) or turn.message
        key = find_protocol(subject) or find_protocol(turn.message)
        if key is None:
            known = ", ".join(p["title"] for p in PROTOCOLS.values())
            return (
                "I can suggest protocols for these procedures:\n"
                f"{known}\n\n"
                'Try "Suggest protocol for titration".'
            )

        protocol = PROTOCOLS[key]
        steps = "\n".join(f"{i}. {step}" for i, step in enumerate(protocol["steps"], 1))
        reply = f"**{protocol['title']}**\n\n{protocol['summary']}\n\n**Steps:**\n{steps}"

        needed = protocol["equipment"]
        available = self.lab_data.available_equipment()
        if available.failed:
            reply += f"\n\n**Equipment needed:** {', '.join(needed)}\n" + _unavailable("equipment availability")
        else:
            names = [e.name.lower() for e in available.value or []]
            ready = [n for n in needed if any(n.lower() in name for name in names)]
            missing = [n for n in needed if n not in ready]
            reply += "\n\n**Equipment:**"
            if ready:
                reply += f"\nAvailable now: {', '.join(ready)}"
            if missing:
                reply += f"\nNot currently available: {', '.join(missing)}"

        turn.remember(last_topic=f"protocol:{key}")
        return reply + "\n\nAlways review the relevant Safety Data Sheets before starting."

    def compatibility(self, turn: ChatTurn) -> str:
        """Storage and mixing compatibility of two chemicals."""
        pair = extract_compatibility_pair(turn.message)
        if pair is None:
            return (
                "**Chemical Compatibility Guidelines**\n\n"
                "• Keep acids away from bases\n"
                "• Keep oxidizers away from flammables and organic material\n"
                "• Keep water-reactive substances dry and away from acids\n\n"
                'Ask "Can I mix hydrochloric acid with sodium hydroxide?" to check a specific pair.'
            )

        described = []
        for name in pair:
            found = self.lab_data.find_chemical_flexible(name)
            chemical = found.value
            label = chemical.name if chemical else name
            groups = hazard_groups(label, chemical.hazard_class if chemical else None)
            described.append((label, groups))

        (first, first_groups), (second, second_groups) = described
        conflicts = incompatible_pairs(first_groups, second_groups)
        if conflicts:
            reasons = ", ".join(f"{a.replace('_', '-')} with {b.replace('_', '-')}" for a, b in conflicts)
            return (
                f"**Incompatible: {first} and {second}**\n\n"
                f"Do not mix or store these together ({reasons}).\n"
                "Store them in separate cabinets and consult the SDS for both."
            )
        return (
            f"**No known incompatibility: {first} and {second}**\n\n"
            "I found no conflicting hazard classes, but always confirm with the SDS before mixing."
        )

    def borrow(self, turn: ChatTurn) -> str:
        """Start a borrowing request for a chemical or equipment item."""
        name = extract_borrow_item(turn.message)
        chemical: Optional[ChemicalDO] = None
        equipment: Optional[EquipmentDO] = None
        failed = False

        if name is None or mentions_reference(turn.message):
            ctx_chemical = self._context_chemical(turn)
            ctx_equipment = self._context_equipment(turn)
            chemical = ctx_chemical.value
            equipment = None if chemical else ctx_equipment.value
            failed = ctx_chemical.failed and ctx_equipment.failed

        if not chemical and not equipment and name is not None:
            by_chemical = self.lab_data.find_chemical_flexible(name)
            by_equipment = self.lab_data.find_equipment_flexible(name)
            if intents.mentions_equipment(turn.lower) and not intents.mentions_chemical(turn.lower):
                equipment = by_equipment.value
                chemical = None if equipment else by_chemical.value
            else:
                chemical = by_chemical.value
                equipment = None if chemical else by_equipment.value
            failed = by_chemical.failed and by_equipment.failed

        if chemical:
            self._remember_chemical(turn, chemical, "borrow")
            turn.remember(
                pending_action=PendingAction("borrow_chemical", {
                    "chemical_id": chemical.id, "chemical_name": chemical.name,
                }),
                awaiting_quantity=True,
            )
            return (
                f"**Borrow {chemical.name}**\n\n"
                f"Available: {format_quantity(chemical.quantity, chemical.unit)}\n\n"
                f"How much do you need? Reply with a quantity such as \"50 {chemical.unit or 'ml'}\"."
            )

        if equipment:
            self._remember_equipment(turn, equipment, "borrow")
            if equipment.status != "available":
                return f"**{equipment.name}** is currently {equipment.status.replace('_', ' ')} and cannot be borrowed."
            turn.remember(pending_action=PendingAction("borrow_equipment", {
                "equipment_id": equipment.id, "equipment_name": equipment.name,
            }))
            return (
                f"**Borrow {equipment.name}**\n\n"
                "Which dates do you need it for, and for what purpose? "
                "Submit the request from the Borrowing page once you have the details."
            )

        if failed:
            return _unavailable("the inventory")
        if name is None:
            turn.remember(awaiting_clarification="borrow")
            return "What would you like to borrow? Please include the chemical or equipment name."
        return f'I couldn\'t find "{name}" in the inventory.{suggestion_block(self._similar_names(name))}'

    def borrow_status(self, turn: ChatTurn) -> str:
        """Status of the user's borrowing requests."""
        result = self.lab_data.borrowings_for_user(turn.user_id)
        if result.failed:
            return _unavailable("your requests")
        if not result.value:
            return "You have no borrowing requests yet. Say \"Borrow <item>\" to start one."
        return f"**Your Borrowing Requests**\n\n{bullet_list(result.value, borrowing_line)}"

    def schedule(self, turn: ChatTurn) -> str:
        """Lectures scheduled today or tomorrow."""
        day = self.lab_data.today()
        label = "today"
        if "tomorrow" in turn.lower:
            day += timedelta(days=1)
            label = "tomorrow"

        result = self.lab_data.schedules_for_date(day)
        if result.failed:
            return _unavailable("the lab schedule")
        turn.remember(last_topic="schedule")
        if not result.value:
            return f"No lectures are scheduled for {label} ({format_date(day)}). The lab is open for bookings."
        return (
            f"**Lab Schedule for {label.capitalize()}** ({format_date(day)})\n\n"
            f"{bullet_list(result.value, schedule_line)}"
        )

    def safety(self, turn: ChatTurn) -> str:
        """Safety guidance for a chemical, a topic, or the lab in general."""
        subject = extract_safety_subject(turn.message)
        if subject and subject not in GENERIC_SAFETY_SUBJECTS:
            found = self.lab_data.find_chemical_flexible(subject)
            if found.failed:
                return _unavailable(f"safety data for {subject}")
            if found.value:
                return self._chemical_safety(turn, found.value)

        for keywords, text in SAFETY_TOPICS:
            if any(keyword in turn.lower for keyword in keywords):
                turn.remember(last_topic="safety")
                return text

        if turn.context.last_chemical and (subject is None or mentions_reference(turn.message)):
            found = self._context_chemical(turn)
            if found.failed:
                return _unavailable(f"safety data for {turn.context.last_chemical}")
            if found.value:
                return self._chemical_safety(turn, found.value)

        turn.remember(last_topic="safety")
        return GENERAL_SAFETY

    def _chemical_safety(self, turn: ChatTurn, chemical: ChemicalDO) -> str:
        self._remember_chemical(turn, chemical, "safety")
        lines = [f"**Safety Information for {chemical.name}**", ""]
        lines.append(f"Hazard class: {chemical.hazard_class or 'Not classified'}")
        if chemical.storage_conditions:
            lines.append(f"Storage: {chemical.storage_conditions}")
        if chemical.safety_precautions:
            lines.append(f"Precautions: {chemical.safety_precautions}")
        lines.extend([
            "",
            "General handling:",
            "• Always wear appropriate PPE",
            "• Work in a well-ventilated area or fume hood",
            "• Have a spill kit readily available",
            "",
            "For complete safety data, consult the Safety Data Sheet (SDS).",
        ])
        return "\n".join(lines)

    def history(self, turn: ChatTurn) -> str:
        """The user's recent borrowing activity."""
        result = self.lab_data.borrowings_for_user(turn.user_id)
        if result.failed:
            return _unavailable("your history")
        if not result.value:
            return "You don't have any borrowing history yet."
        return f"**Your Recent Activity**\n\n{bullet_list(result.value, borrowing_line)}"

    def help(self, turn: ChatTurn) -> str:
        """What the assistant can do, adjusted to the user's role."""
        reply = (
            "**Lab Assistant Help**\n\n"
            "I can help you with:\n"
            '• Chemical and equipment details: "What are the details of sodium chloride?"\n'
            '• Availability: "What chemicals are available?"\n'
            '• Equipment booking: "Book the centrifuge for tomorrow"\n'
            '• Borrowing: "Borrow ethanol" or "What is the status of my requests?"\n'
            '• Safety information: "What PPE should I wear?"\n'
            '• Protocols: "Suggest protocol for titration"\n'
            '• Lab schedule: "What is on the lab schedule today?"'
        )
        if turn.is_staff:
            reply += (
                "\n\n**Staff tools:**\n"
                '• Inventory alerts: "Show low stock chemicals"\n'
                '• Maintenance: "What equipment needs maintenance?"\n'
                '• Purchasing: "Request purchase of methanol"'
            )
        return reply

    # Follow-ups and default

    def contextual(self, turn: ChatTurn) -> Optional[str]:
        """
        Continue a pending flow or answer a follow-up about the last item.

        Returns None when the message does not relate to the context.
        """
        ctx = turn.context
        pending = ctx.pending_action

        if pending and NEGATIVE.match(turn.lower):
            turn.forget_pending()
            return "No problem, I've cancelled that. What else can I help with?"

        if pending and ctx.awaiting_quantity:
            quantity = parse_quantity(turn.lower)
            if quantity:
                return self._complete_quantity(turn, pending, *quantity)
            if AFFIRMATIVE.match(turn.lower):
                return 'Please reply with an amount, for example "500 ml".'

        if pending and AFFIRMATIVE.match(turn.lower):
            return self._affirmative(turn, pending)

        if ctx.last_chemical and (mentions_reference(turn.lower) or any(w in turn.lower for w in FOLLOW_UP_WORDS)):
            found = self._context_chemical(turn)
            if found.failed:
                return _unavailable(ctx.last_chemical)
            if found.value:
                return self._chemical_reply(turn, found.value)

        if ctx.last_equipment and (mentions_reference(turn.lower) or any(w in turn.lower for w in FOLLOW_UP_WORDS)):
            found = self._context_equipment(turn)
            if found.failed:
                return _unavailable(ctx.last_equipment)
            if found.value:
                return self._equipment_reply(turn, found.value)

        return None

    def _affirmative(self, turn: ChatTurn, pending: PendingAction) -> str:
        params = pending.params
        if pending.kind == "purchase_request":
            turn.remember(awaiting_quantity=True)
            return f"How much {params.get('item_name', 'of it')} do you need? Reply with a quantity such as \"500 ml\"."

        if pending.kind == "borrow_chemical":
            turn.remember(awaiting_quantity=True)
            return "How much do you need? Reply with a quantity such as \"50 ml\"."

        if pending.kind == "book_equipment":
            turn.forget_pending()
            return (
                f"**Booking Ready: {params.get('equipment_name', 'equipment')}**\n\n"
                f"Date: {params.get('date', 'to be confirmed')}\n\n"
                "Submit the booking from the Equipment page so a technician can approve it."
            )

        if pending.kind == "borrow_equipment":
            turn.forget_pending()
            return (
                f"Great. Submit the request for **{params.get('equipment_name', 'the equipment')}** "
                "from the Borrowing page with your dates and purpose."
            )

        if pending.kind == "find_alternative":
            turn.forget_pending()
            return self._alternatives(params)

        turn.forget_pending()
        return "Okay. What would you like to do next?"

    def _alternatives(self, params: Dict) -> str:
        category = params.get("category")
        result = self.lab_data.equipment_by_category(category) if category else self.lab_data.available_equipment()
        if result.failed:
            return _unavailable("alternatives")
        name = (params.get("name") or "").lower()
        options = [
            e for e in result.value or []
            if e.status == "available" and e.name.lower() != name
        ]
        if not options:
            similar = self._similar_names(name) if name else []
            if similar:
                return f"No direct alternatives are available right now.{suggestion_block(similar)}"
            return "No alternatives are available right now. Please try again later."
        return f"**Alternatives**\n\n{bullet_list(options, equipment_line, limit=5)}"

    def _complete_quantity(self, turn: ChatTurn, pending: PendingAction, amount: float, unit: Optional[str]) -> str:
        params = pending.params
        amount_text = f"{format_number(amount)} {unit}" if unit else format_number(amount)

        if pending.kind == "borrow_chemical":
            chemical = self.lab_data.get_chemical(params.get("chemical_id")) if params.get("chemical_id") else None
            if chemical is not None and not chemical.failed and chemical.value:
                available = chemical.value.quantity or 0
                if amount > available:
                    return (
                        f"Only {format_quantity(available, chemical.value.unit)} of "
                        f"{chemical.value.name} is available. Please enter a smaller amount."
                    )
            turn.forget_pending()
            return (
                f"**Borrow Request Ready**\n\n"
                f"Chemical: {params.get('chemical_name', 'chemical')}\n"
                f"Quantity: {amount_text}\n\n"
                "Submit it from the Borrowing page for technician approval."
            )

        turn.forget_pending()
        if pending.kind == "purchase_request":
            return (
                "**Purchase Request Ready**\n\n"
                f"Item: {params.get('item_name', 'item')}\n"
                f"Quantity: {amount_text}\n\n"
                "An administrator will review the request."
            )
        return f"Noted: {amount_text}."

    def default(self, turn: ChatTurn) -> str:
        """Live lab summary for messages nothing else understood."""
        chemicals = self.lab_data.count_chemicals()
        equipment = self.lab_data.count_equipment()
        available = self.lab_data.count_available_equipment()
        schedules = self.lab_data.schedules_for_date()
        pending = self.lab_data.count_pending_borrowings(turn.user_id)

        results = (chemicals, equipment, available, schedules, pending)
        if all(r.failed for r in results):
            return _unavailable("the lab status")

        def show(result: FetchResult, render=str) -> str:
            return "unavailable" if result.failed else render(result.value)

        equipment_text = (
            "unavailable" if equipment.failed or available.failed
            else f"{available.value} of {equipment.value}"
        )
        return (
            "**Lab Status Overview**\n\n"
            f"• Chemicals in inventory: {show(chemicals)}\n"
            f"• Equipment available: {equipment_text}\n"
            f"• Lectures today: {show(schedules, len)}\n"
            f"• Your pending requests: {show(pending)}\n\n"
            "I can help with chemical details, equipment booking and safety information. "
            'Type "help" to see everything I can do.'
        )
