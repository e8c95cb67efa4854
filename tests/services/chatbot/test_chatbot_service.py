"""Conversation scenarios through ChatbotService.process_message."""

import pytest
from datetime import timedelta
from unittest.mock import patch


@pytest.fixture
def borrower(users):
    return users["borrower"]


@pytest.fixture
def ask(chatbot, borrower):
    """Send a message as the borrower and return the reply."""
    def _ask(message, user_id=None, role="borrower"):
        return chatbot.process_message(message, user_id or borrower, role)
    return _ask


class TestInputValidation:
    """SUT: ChatbotService.process_message (validation boundary)"""

    @pytest.mark.parametrize("message", [None, "", "   "])
    def test_missing_message(self, ask, message):
        reply = ask(message)
        assert "Missing Info" in reply
        assert "more details" in reply

    def test_too_long(self, ask):
        reply = ask("a" * 1001)
        assert "Message Too Long" in reply
        assert "under 1000 characters" in reply

    def test_too_long_reports_configured_limit(self, ask, test_settings):
        test_settings.message_max_length = 200
        reply = ask("a" * 201)
        assert "Message Too Long" in reply
        assert "under 200 characters" in reply

    @pytest.mark.parametrize("role", ["student", "", None, "superuser"])
    def test_invalid_role(self, chatbot, borrower, role):
        reply = chatbot.process_message("help", borrower, role)
        assert "Validation Error (role)" in reply

    def test_unknown_user(self, chatbot):
        reply = chatbot.process_message("help", 999, "borrower")
        assert "User not found" in reply

    def test_user_lookup_failure_is_system_busy(self, chatbot, lab_data, borrower):
        with patch.object(lab_data.users, "get", side_effect=RuntimeError("connection reset")):
            reply = chatbot.process_message("help", borrower, "borrower")
        assert "System Busy" in reply
        assert "lab database" in reply
        assert "try again in a moment" in reply

    def test_handler_crash_is_generic_error(self, chatbot, borrower):
        with patch.object(chatbot.router, "route", side_effect=ZeroDivisionError("oops")):
            reply = chatbot.process_message("help", borrower, "borrower")
        assert reply.startswith("**Error:**")

    def test_string_user_id_accepted(self, chatbot, borrower):
        assert "Lab Assistant Help" in chatbot.process_message("help", str(borrower), "borrower")


class TestAuditLogging:
    """SUT: ChatbotService._log_query"""

    def test_every_message_logged(self, ask, audit_repo, borrower):
        ask("What chemicals are available?")
        entries = audit_repo.list_by_user(borrower)
        assert len(entries) == 1
        assert entries[0].query_text == "What chemicals are available?"
        assert entries[0].query_type == "chemical_inquiry"
        assert "Request restock" in entries[0].response_text

    def test_validation_failures_logged_as_error(self, ask, audit_repo, borrower):
        ask("")
        assert audit_repo.list_by_user(borrower)[0].query_type == "error"

    def test_audit_failure_does_not_replace_reply(self, ask, audit_repo):
        with patch.object(audit_repo, "create", side_effect=RuntimeError("disk full")):
            reply = ask("help")
        assert "Lab Assistant Help" in reply


class TestDetailsScenario:
    """SUT: ResponseHandlers.details, ResponseHandlers.safety"""

    def test_chemical_details(self, ask, add_chemical):
        add_chemical(name="Sodium Chloride", category="Salt", quantity=100, unit="g")
        reply = ask("What are the details of sodium chloride?")
        assert "Sodium Chloride" in reply
        assert "Salt" in reply
        assert "100 g" in reply

    def test_follow_up_uses_last_chemical(self, ask, add_chemical):
        add_chemical(hazard_class="Irritant")
        ask("What are the details of sodium chloride?")
        reply = ask("What about its safety?")
        assert "Safety Information for Sodium Chloride" in reply
        assert "Irritant" in reply

    def test_pronoun_follow_up_details(self, ask, add_chemical):
        add_chemical(storage_location="Cabinet 4")
        ask("What are the details of sodium chloride?")
        reply = ask("Where is it stored?")
        assert "Cabinet 4" in reply

    def test_what_is_chemical(self, ask, add_chemical):
        add_chemical(name="Sodium Chloride", category="Salt", quantity=100, unit="g")
        reply = ask("What is sodium chloride?")
        assert "Sodium Chloride" in reply
        assert "100 g" in reply
        assert "Lab Status Overview" not in reply

    def test_what_is_status_still_reaches_borrow_status(self, ask, add_chemical):
        add_chemical()
        reply = ask("What is the status of my requests?")
        assert "no borrowing requests yet" in reply

    def test_details_survive_ranked_search_failure(self, ask, lab_data, add_chemical):
        add_chemical(name="Methanol", category="Solvent")
        with patch.object(lab_data.chemicals, "search_ranked", side_effect=RuntimeError("fts broken")):
            reply = ask("Tell me about methan")
        assert "Methanol" in reply
        assert "Solvent" in reply

    def test_equipment_details(self, ask, add_equipment):
        add_equipment(name="Centrifuge", manufacturer="Eppendorf")
        reply = ask("Tell me about the centrifuge")
        assert "Centrifuge" in reply
        assert "Eppendorf" in reply

    def test_not_found_offers_alternatives(self, ask, add_chemical):
        add_chemical(name="Sodium Hydroxide")
        reply = ask("What are the details of sodium azide?")
        assert "couldn't find details" in reply
        assert "Sodium Hydroxide" in reply

    def test_lookup_failure_is_not_not_found(self, ask, lab_data, add_chemical):
        add_chemical()
        with patch.object(lab_data.chemicals, "find_by_name", side_effect=RuntimeError("down")), \
                patch.object(lab_data.equipment, "find_by_name", side_effect=RuntimeError("down")):
            reply = ask("What are the details of sodium chloride?")
        assert "couldn't check" in reply
        assert "couldn't find" not in reply


class TestAvailabilityScenario:
    """SUT: ResponseHandlers.availability"""

    def test_empty_inventory_suggests_restock(self, ask):
        reply = ask("What chemicals are available?")
        assert "Request restock" in reply

    def test_lists_in_stock(self, ask, add_chemical):
        add_chemical(name="Acetone", quantity=500, unit="ml")
        add_chemical(name="Ethanol", quantity=0, unit="ml")
        reply = ask("What chemicals are available?")
        assert "Acetone" in reply
        assert "1 chemical(s) are out of stock" in reply

    def test_empty_equipment_suggests_request(self, ask):
        assert "Request new equipment" in ask("Show available equipment")

    def test_equipment_listing(self, ask, add_equipment):
        add_equipment(name="Centrifuge")
        add_equipment(name="Oven", status="maintenance")
        reply = ask("Show available equipment")
        assert "Available Equipment" in reply
        assert "Centrifuge" in reply
        assert "Oven" not in reply

    def test_fetch_failure_is_reported(self, ask, lab_data):
        with patch.object(lab_data.chemicals, "list_all", side_effect=RuntimeError("down")):
            reply = ask("What chemicals are available?")
        assert "couldn't check the chemical inventory" in reply


class TestAlertsScenario:
    """SUT: ResponseHandlers.inventory_alerts"""

    def test_low_stock_and_expiring(self, ask, add_chemical, today, users):
        add_chemical(name="Acetone", quantity=5, unit="ml")
        add_chemical(name="Ethanol", quantity=500, expiry_date=today + timedelta(days=10))
        reply = ask("Show low stock chemicals", users["technician"], "technician")
        assert "Low Stock Chemicals" in reply
        assert "Expiring Soon" in reply
        assert "Acetone" in reply

    def test_no_alerts(self, ask, add_chemical):
        add_chemical(quantity=500)
        assert "No Inventory Alerts" in ask("Any inventory alerts?")


class TestSafetyScenario:
    """SUT: ResponseHandlers.safety"""

    def test_acid_handling(self, ask):
        reply = ask("What safety precautions for acids?")
        assert "Acid Handling Safety" in reply
        assert "wear safety goggles" in reply

    def test_ppe(self, ask):
        reply = ask("What PPE should I wear?")
        assert "Required PPE" in reply
        assert "safety goggles" in reply

    def test_named_chemical(self, ask, add_chemical):
        add_chemical(name="Sodium Hydroxide", hazard_class="Corrosive")
        reply = ask("Safety information for sodium hydroxide")
        assert "Safety Information for Sodium Hydroxide" in reply
        assert "Corrosive" in reply

    def test_general_fallback(self, ask):
        assert "Lab Safety Guidelines" in ask("Is there a safety briefing?")


class TestBookingScenario:
    """SUT: ResponseHandlers.booking"""

    def test_available(self, ask, add_equipment, today):
        add_equipment(name="Centrifuge")
        reply = ask("Book the centrifuge for tomorrow")
        assert "available for booking" in reply
        assert (today + timedelta(days=1)).isoformat() in reply
        assert "Start time" in reply

    def test_already_booked_lists_conflicts(self, ask, add_equipment, add_borrowing, users, today):
        item = add_equipment(name="Centrifuge")
        add_borrowing(borrower_id=users["admin"], equipment_id=item, status="approved",
                      borrow_date=today, return_date=today + timedelta(days=2))
        reply = ask("Book the centrifuge for tomorrow")
        assert "already booked" in reply
        assert "Upcoming bookings" in reply
        assert "Ada Admin" in reply

    def test_under_maintenance(self, ask, add_equipment):
        add_equipment(name="Centrifuge", status="maintenance")
        assert "under maintenance" in ask("Book the centrifuge")

    def test_confirm_booking(self, ask, add_equipment):
        add_equipment(name="Centrifuge")
        ask("Book the centrifuge for tomorrow")
        reply = ask("yes")
        assert "Booking Ready: Centrifuge" in reply

    def test_unknown_equipment(self, ask, add_equipment):
        add_equipment(name="Oven")
        reply = ask("Book the cyclotron")
        assert 'couldn\'t find equipment called "cyclotron"' in reply
        assert "Oven" in reply


class TestMultiTurnFlows:
    """SUT: ResponseHandlers.contextual"""

    def test_purchase_then_quantity(self, ask, users):
        reply = ask("Request purchase of methanol", users["technician"], "technician")
        assert "Purchase Request Created" in reply
        assert "methanol" in reply
        reply = ask("500 ml", users["technician"], "technician")
        assert "Purchase Request Ready" in reply
        assert "500 ml" in reply

    def test_purchase_of_stocked_chemical_sets_context(self, ask, add_chemical, users):
        add_chemical(name="Methanol", hazard_class="Flammable")
        reply = ask("Request purchase of methanol", users["technician"], "technician")
        assert "Current stock" in reply
        reply = ask("What about its safety?", users["technician"], "technician")
        assert "Safety Information for Methanol" in reply
        assert "Flammable" in reply

    def test_cancel_pending(self, ask):
        ask("Request purchase of methanol")
        assert "cancelled" in ask("no thanks")
        assert "Lab Status Overview" in ask("500 ml")

    def test_borrow_chemical_quantity_checked(self, ask, add_chemical):
        add_chemical(name="Ethanol", quantity=100, unit="ml")
        assert "Borrow Ethanol" in ask("I want to borrow ethanol")
        assert "Only 100 ml" in ask("250 ml")
        assert "Borrow Request Ready" in ask("50 ml")

    def test_context_is_per_user(self, ask, add_chemical, users):
        add_chemical(hazard_class="Irritant")
        ask("What are the details of sodium chloride?")
        reply = ask("What about its safety?", users["admin"], "admin")
        assert "Safety Information for" not in reply


class TestOtherIntents:
    """SUT: remaining ResponseHandlers intents"""

    def test_protocol(self, ask):
        reply = ask("Suggest protocol for titration")
        assert "Titration Protocol" in reply
        assert "Acid-base titration" in reply

    def test_protocol_checks_equipment(self, ask, add_equipment):
        add_equipment(name="Burette 50ml")
        reply = ask("Suggest protocol for titration")
        assert "Available now: Burette" in reply

    def test_compatibility(self, ask):
        reply = ask("Can I mix hydrochloric acid with sodium hydroxide?")
        assert "Incompatible" in reply

    def test_schedule(self, ask, lab_data, today):
        from chemlab.db.database_models import LectureScheduleDO
        lab_data.create_schedule(LectureScheduleDO(id=0, title="Organic Lab", scheduled_date=today, start_time="09:00"))
        reply = ask("What is on the lab schedule today?")
        assert "Organic Lab" in reply

    def test_borrow_status(self, ask, add_chemical, add_borrowing, borrower):
        chem = add_chemical(name="Ethanol")
        add_borrowing(borrower_id=borrower, chemical_id=chem, status="pending", quantity=20)
        reply = ask("What is the status of my requests?")
        assert "Ethanol" in reply
        assert "pending" in reply

    def test_help_role_aware(self, ask, users):
        assert "Staff tools" not in ask("help")
        assert "Staff tools" in ask("help", users["admin"], "admin")

    def test_maintenance(self, ask, add_equipment, today, users):
        add_equipment(name="Balance", maintenance_schedule=30, last_maintenance_date=today - timedelta(days=45))
        reply = ask("What equipment needs maintenance?", users["technician"], "technician")
        assert "Maintenance Due" in reply
        assert "Balance" in reply

    def test_default_overview(self, ask, add_chemical, add_equipment):
        add_chemical()
        add_equipment()
        reply = ask("hello there")
        assert "Lab Status Overview" in reply
        assert "Chemicals in inventory: 1" in reply
        assert "Equipment available: 1 of 1" in reply

    def test_default_partial_failure(self, ask, lab_data):
        with patch.object(lab_data.chemicals, "count", side_effect=RuntimeError("down")):
            reply = ask("hello there")
        assert "Chemicals in inventory: unavailable" in reply
