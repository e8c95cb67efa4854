"""Tests for ChemicalRepository, EquipmentRepository and BorrowingRepository."""

import pytest
from datetime import timedelta

from chemlab.db.repositories import BorrowingRepository, ChemicalRepository, EquipmentRepository
from chemlab.db.repositories.search import normalize_name, tokenize


@pytest.fixture
def chemicals(db_conn):
    return ChemicalRepository(db_conn.conn)


@pytest.fixture
def equipment(db_conn):
    return EquipmentRepository(db_conn.conn)


@pytest.fixture
def borrowings(db_conn):
    return BorrowingRepository(db_conn.conn)


class TestSearchHelpers:
    """SUT: normalize_name, tokenize"""

    def test_normalize_strips_punctuation_and_case(self):
        assert normalize_name("Sodium-Chloride (NaCl)") == "sodiumchloridenacl"

    def test_tokenize(self):
        assert tokenize("Hydrochloric acid, 37%") == ["hydrochloric", "acid", "37"]


class TestChemicalRepository:
    """Tests for ChemicalRepository."""

    class TestCreate:
        """SUT: ChemicalRepository.create"""

        def test_fields_persisted(self, chemicals, add_chemical, today):
            new_id = add_chemical(
                storage_location="Cabinet 2", expiry_date=today, hazard_class="Irritant",
                cas_number="7647-14-5", molecular_formula="NaCl", molecular_weight=58.44
            )
            result = chemicals.get(new_id)
            assert result is not None
            assert result.name == "Sodium Chloride"
            assert result.quantity == 100.0
            assert result.unit == "g"
            assert result.category == "Salt"
            assert result.storage_location == "Cabinet 2"
            assert result.expiry_date == today
            assert result.cas_number == "7647-14-5"

        def test_ids_increase(self, add_chemical):
            first = add_chemical(name="A")
            second = add_chemical(name="B")
            assert second > first

    class TestFindByName:
        """SUT: ChemicalRepository.find_by_name, find_by_normalized_name"""

        def test_case_insensitive_exact(self, chemicals, add_chemical):
            add_chemical()
            assert chemicals.find_by_name("  sodium CHLORIDE ").name == "Sodium Chloride"

        def test_exact_requires_whole_name(self, chemicals, add_chemical):
            add_chemical()
            assert chemicals.find_by_name("sodium") is None

        def test_normalized_ignores_spacing_and_punctuation(self, chemicals, add_chemical):
            add_chemical(name="Sodium-Hydroxide")
            assert chemicals.find_by_normalized_name("sodium hydroxide").name == "Sodium-Hydroxide"

        def test_normalized_empty_input(self, chemicals):
            assert chemicals.find_by_normalized_name("!!") is None

    class TestSearch:
        """SUT: ChemicalRepository.search_ranked, search_substring"""

        def test_ranked_prefers_name_match(self, chemicals, add_chemical):
            add_chemical(name="Acetone", category="Solvent")
            add_chemical(name="Solvent Blue", category="Dye")
            results = chemicals.search_ranked("solvent")
            assert [c.name for c in results] == ["Solvent Blue", "Acetone"]

        def test_ranked_requires_every_token(self, chemicals, add_chemical):
            add_chemical(name="Sodium Chloride")
            add_chemical(name="Sodium Hydroxide")
            results = chemicals.search_ranked("sodium hydrox")
            assert [c.name for c in results] == ["Sodium Hydroxide"]

        def test_ranked_matches_word_prefix_only(self, chemicals, add_chemical):
            add_chemical(name="Methanol")
            assert chemicals.search_ranked("thanol") == []

        def test_substring_matches_inside_words(self, chemicals, add_chemical):
            add_chemical(name="Methanol")
            assert [c.name for c in chemicals.search_substring("thanol")] == ["Methanol"]

        def test_substring_matches_formula(self, chemicals, add_chemical):
            add_chemical(name="Table salt", molecular_formula="NaCl")
            assert len(chemicals.search_substring("nacl")) == 1

        def test_limit(self, chemicals, add_chemical):
            for i in range(5):
                add_chemical(name=f"Buffer {i}")
            assert len(chemicals.search_ranked("buffer", limit=3)) == 3

    class TestAlerts:
        """SUT: ChemicalRepository.list_low_stock, list_expiring, list_expired"""

        def test_low_stock_excludes_empty_and_plentiful(self, chemicals, add_chemical):
            add_chemical(name="Empty", quantity=0)
            add_chemical(name="Low", quantity=5)
            add_chemical(name="Edge", quantity=10)
            add_chemical(name="Plenty", quantity=500)
            assert [c.name for c in chemicals.list_low_stock(10)] == ["Low", "Edge"]

        def test_expiring_window(self, chemicals, add_chemical, today):
            add_chemical(name="Past", expiry_date=today - timedelta(days=1))
            add_chemical(name="Today", expiry_date=today)
            add_chemical(name="Soon", expiry_date=today + timedelta(days=30))
            add_chemical(name="Later", expiry_date=today + timedelta(days=31))
            add_chemical(name="Never")
            assert [c.name for c in chemicals.list_expiring(today, 30)] == ["Today", "Soon"]

        def test_expired(self, chemicals, add_chemical, today):
            add_chemical(name="Past", expiry_date=today - timedelta(days=1))
            add_chemical(name="Today", expiry_date=today)
            assert [c.name for c in chemicals.list_expired(today)] == ["Past"]

    class TestListByCategory:
        """SUT: ChemicalRepository.list_by_category, count"""

        def test_case_insensitive(self, chemicals, add_chemical):
            add_chemical(name="HCl", category="Acid")
            add_chemical(name="NaOH", category="Base")
            assert [c.name for c in chemicals.list_by_category("acid")] == ["HCl"]
            assert chemicals.count() == 2


class TestEquipmentRepository:
    """Tests for EquipmentRepository."""

    class TestFind:
        """SUT: EquipmentRepository.find_by_name, search_ranked"""

        def test_find_by_name(self, equipment, add_equipment):
            add_equipment()
            assert equipment.find_by_name("centrifuge").name == "Centrifuge"

        def test_search_by_category(self, equipment, add_equipment):
            add_equipment(name="Mini Spin", category="Centrifuge")
            assert [e.name for e in equipment.search_ranked("centrifuge")] == ["Mini Spin"]

    class TestMaintenance:
        """SUT: EquipmentRepository.list_maintenance_due, list_calibration_due"""

        def test_maintenance_interval_elapsed(self, equipment, add_equipment, today):
            add_equipment(name="Due", maintenance_schedule=30, last_maintenance_date=today - timedelta(days=30))
            add_equipment(name="Fine", maintenance_schedule=30, last_maintenance_date=today - timedelta(days=29))
            add_equipment(name="Unscheduled", last_maintenance_date=today - timedelta(days=900))
            assert [e.name for e in equipment.list_maintenance_due(today)] == ["Due"]

        def test_calibration_due_today_or_earlier(self, equipment, add_equipment, today):
            add_equipment(name="Due", next_calibration_date=today)
            add_equipment(name="Later", next_calibration_date=today + timedelta(days=1))
            assert [e.name for e in equipment.list_calibration_due(today)] == ["Due"]

    class TestAvailability:
        """SUT: EquipmentRepository.list_available, count_overlapping_bookings"""

        def test_excludes_running_approved_borrowings(self, equipment, add_equipment, add_borrowing, users, today):
            busy = add_equipment(name="Busy")
            add_equipment(name="Free")
            add_equipment(name="Broken", status="maintenance")
            add_borrowing(
                borrower_id=users["borrower"], equipment_id=busy, status="approved",
                borrow_date=today - timedelta(days=1), return_date=today + timedelta(days=2)
            )
            assert [e.name for e in equipment.list_available(today)] == ["Free"]

        def test_pending_and_finished_borrowings_do_not_block(self, equipment, add_equipment, add_borrowing, users, today):
            item = add_equipment(name="Scope")
            add_borrowing(borrower_id=users["borrower"], equipment_id=item, status="pending",
                          borrow_date=today, return_date=today + timedelta(days=1))
            add_borrowing(borrower_id=users["borrower"], equipment_id=item, status="approved",
                          borrow_date=today - timedelta(days=5), return_date=today - timedelta(days=1))
            assert [e.name for e in equipment.list_available(today)] == ["Scope"]

        def test_overlap_counting(self, equipment, add_equipment, add_borrowing, users, today):
            item = add_equipment()
            add_borrowing(borrower_id=users["borrower"], equipment_id=item, status="approved",
                          borrow_date=today + timedelta(days=2), return_date=today + timedelta(days=4))
            assert equipment.count_overlapping_bookings(item, today, today + timedelta(days=1)) == 0
            assert equipment.count_overlapping_bookings(item, today + timedelta(days=4), today + timedelta(days=6)) == 1

    class TestCounts:
        """SUT: EquipmentRepository.count, count_by_status"""

        def test_counts(self, equipment, add_equipment):
            add_equipment(name="A")
            add_equipment(name="B", status="in_use")
            assert equipment.count() == 2
            assert equipment.count_by_status("available") == 1


class TestBorrowingRepository:
    """Tests for BorrowingRepository."""

    class TestListByBorrower:
        """SUT: BorrowingRepository.list_by_borrower"""

        def test_joins_item_and_borrower_names(self, borrowings, add_chemical, add_borrowing, users):
            chem = add_chemical(name="Ethanol")
            add_borrowing(borrower_id=users["borrower"], chemical_id=chem, quantity=50)
            result = borrowings.list_by_borrower(users["borrower"])
            assert len(result) == 1
            assert result[0].item_name == "Ethanol"
            assert result[0].borrower_name == "Bea Borrower"

        def test_status_filter(self, borrowings, add_borrowing, users):
            add_borrowing(borrower_id=users["borrower"], status="pending")
            add_borrowing(borrower_id=users["borrower"], status="approved")
            result = borrowings.list_by_borrower(users["borrower"], status="approved")
            assert [b.status for b in result] == ["approved"]
            assert borrowings.count_by_status(users["borrower"], "pending") == 1

        def test_other_users_excluded(self, borrowings, add_borrowing, users):
            add_borrowing(borrower_id=users["admin"])
            assert borrowings.list_by_borrower(users["borrower"]) == []

    class TestListUpcoming:
        """SUT: BorrowingRepository.list_upcoming_for_equipment"""

        def test_only_open_and_unfinished(self, borrowings, add_equipment, add_borrowing, users, today):
            item = add_equipment()
            add_borrowing(borrower_id=users["borrower"], equipment_id=item, status="approved",
                          borrow_date=today + timedelta(days=3), return_date=today + timedelta(days=4))
            add_borrowing(borrower_id=users["borrower"], equipment_id=item, status="pending",
                          borrow_date=today + timedelta(days=1), return_date=today + timedelta(days=1))
            add_borrowing(borrower_id=users["borrower"], equipment_id=item, status="rejected",
                          borrow_date=today, return_date=today)
            add_borrowing(borrower_id=users["borrower"], equipment_id=item, status="approved",
                          borrow_date=today - timedelta(days=3), return_date=today - timedelta(days=1))
            result = borrowings.list_upcoming_for_equipment(item, today)
            assert [b.status for b in result] == ["pending", "approved"]
