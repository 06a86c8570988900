# Overview: Pytest coverage for snapshot import: ordering, filtering and per-record isolation.

"""
Backup Import Tests

Covers:
- Parents-first import with referential filtering of projects and receipts
- Per-record savepoints: one bad record never loses the rest
- Dual key spellings and embedded JSON list coercion
- Receipt aggregate policies (increment / recompute)
- Whole-import rollback when a failure happens outside a record
"""

from datetime import datetime

import pytest

from crm.models import (
    Broker, CommissionPayment, Customer, Interaction, InventoryItem, Project, Receipt, Setting,
)
from crm.services import backup_service, settings_service
from crm.services.backup_service import BackupError


def _stats(imported=0, skipped=0, errors=0):
    return {"imported": imported, "skipped": skipped, "errors": errors}


class TestImportOrdering:
    """Parents are imported before the children that reference them."""

    def test_project_and_receipt_filtering(self, db_session):
        payload = {
            "customers": [{"id": "C1", "name": "A"}],
            "projects": [
                {"id": "P1", "customerId": "C1", "sale": 1000, "received": 0},
                {"id": "P2", "customerId": "C-missing", "sale": 500},
            ],
            "receipts": [{"id": "R1", "projectId": "P1", "amount": 200}],
        }

        stats = backup_service.import_snapshot(payload)

        assert stats["customers"] == _stats(imported=1)
        assert stats["projects"] == _stats(imported=1, skipped=1)
        assert stats["receipts"] == _stats(imported=1)
        assert db_session.get(Project, "P1").received == 200
        assert db_session.get(Project, "P2") is None

    def test_stats_cover_every_section(self, db_session):
        stats = backup_service.import_snapshot({})

        assert set(stats) == {
            "customers", "brokers", "projects", "receipts", "interactions",
            "inventory", "masterProjects", "commissionPayments", "settings",
        }
        assert all(counts == _stats() for counts in stats.values())

    def test_project_without_customer_is_skipped(self, db_session, customer):
        payload = {
            "projects": [
                {"id": "P1"},
                {"id": "P2", "customerId": "undefined"},
                {"id": "P3", "customer_id": "null"},
            ],
        }

        stats = backup_service.import_snapshot(payload)

        assert stats["projects"] == _stats(skipped=3)
        assert db_session.query(Project).count() == 0

    def test_project_uses_customers_already_in_database(self, db_session, customer):
        stats = backup_service.import_snapshot({"projects": [{"id": "P1", "customerId": "C1"}]})

        assert stats["projects"] == _stats(imported=1)

    def test_unknown_broker_is_dropped_not_skipped(self, db_session):
        payload = {
            "customers": [{"id": "C1", "name": "A"}],
            "brokers": [{"id": "B1", "name": "Broker"}],
            "projects": [
                {"id": "P1", "customerId": "C1", "brokerId": "B-missing"},
                {"id": "P2", "customerId": "C1", "brokerId": "B1"},
                {"id": "P3", "customerId": "C1", "brokerId": "null"},
            ],
        }

        stats = backup_service.import_snapshot(payload)

        assert stats["projects"] == _stats(imported=3)
        assert db_session.get(Project, "P1").broker_id is None
        assert db_session.get(Project, "P2").broker_id == "B1"
        assert db_session.get(Project, "P3").broker_id is None

    def test_receipt_for_unknown_project_is_skipped(self, db_session, project):
        payload = {
            "receipts": [
                {"id": "R1", "projectId": "P-missing", "amount": 50},
                {"id": "R2", "amount": 75},
                {"id": "R3", "projectId": "P1", "amount": 25},
            ],
        }

        stats = backup_service.import_snapshot(payload)

        assert stats["receipts"] == _stats(imported=2, skipped=1)
        assert db_session.get(Receipt, "R1") is None
        assert db_session.get(Receipt, "R2").project_id is None
        assert db_session.get(Project, "P1").received == 25

    def test_weak_links_are_stored_even_when_dangling(self, db_session):
        payload = {
            "customers": [{"id": "C1", "name": "A", "linkedBrokerId": "B-nowhere"}],
            "interactions": [{"id": "I1", "customerId": "C-nowhere"}],
            "inventory": [{"id": "INV1", "customerId": "C-nowhere"}],
        }

        stats = backup_service.import_snapshot(payload)

        assert stats["customers"] == _stats(imported=1)
        assert stats["interactions"] == _stats(imported=1)
        assert stats["inventory"] == _stats(imported=1)
        assert db_session.get(Customer, "C1").linked_broker_id == "B-nowhere"
        assert db_session.get(Interaction, "I1").customer_id == "C-nowhere"


class TestRecordIsolation:
    """A failing record is rolled back on its own."""

    def test_constraint_violation_counts_one_error(self, db_session):
        payload = {
            "customers": [
                {"id": "C1", "name": "A"},
                {"id": "C2", "name": "B", "type": "landlord"},
                {"id": "C3", "name": "C"},
            ],
            "brokers": [{"id": "B1", "name": "Broker"}],
        }

        stats = backup_service.import_snapshot(payload)

        assert stats["customers"] == _stats(imported=2, errors=1)
        assert stats["brokers"] == _stats(imported=1)
        assert {c.id for c in db_session.query(Customer).all()} == {"C1", "C3"}

    def test_failed_customer_makes_its_projects_skip(self, db_session):
        payload = {
            "customers": [{"id": "C1", "name": "A", "status": "archived"}],
            "projects": [{"id": "P1", "customerId": "C1"}],
        }

        stats = backup_service.import_snapshot(payload)

        assert stats["customers"] == _stats(errors=1)
        assert stats["projects"] == _stats(skipped=1)

    def test_malformed_installments_fail_only_that_project(self, db_session, customer):
        payload = {
            "projects": [
                {"id": "P1", "customerId": "C1", "installments": "not json"},
                {"id": "P2", "customerId": "C1", "installments": [{"amount": 100}]},
            ],
        }

        stats = backup_service.import_snapshot(payload)

        assert stats["projects"] == _stats(imported=1, errors=1)
        assert db_session.get(Project, "P1") is None
        assert db_session.get(Project, "P2").installments == '[{"amount":100}]'

    def test_commission_payment_for_unknown_project_is_an_error(self, db_session, project):
        payload = {
            "commissionPayments": [
                {"id": "CP1", "projectId": "P-missing", "amount": 10},
                {"id": "CP2", "projectId": "P1", "amount": 20},
            ],
        }

        stats = backup_service.import_snapshot(payload)

        assert stats["commissionPayments"] == _stats(imported=1, errors=1)
        assert db_session.get(CommissionPayment, "CP2").amount == 20

    def test_missing_ids_and_non_objects_are_skipped(self, db_session):
        payload = {
            "customers": [{"name": "No id"}, {"id": "   ", "name": "Blank"}, "junk", {"id": " C1 ", "name": "A"}],
        }

        stats = backup_service.import_snapshot(payload)

        assert stats["customers"] == _stats(imported=1, skipped=3)
        assert db_session.get(Customer, "C1").name == "A"

    def test_non_list_section_is_ignored(self, db_session):
        stats = backup_service.import_snapshot({"customers": {"id": "C1"}, "settings": ["x"]})

        assert stats["customers"] == _stats()
        assert stats["settings"] == _stats()

    def test_failure_outside_a_record_rolls_back_everything(self, db_session, monkeypatch):
        def boom(session, model):
            raise RuntimeError("lookup failed")

        monkeypatch.setattr(backup_service, "_id_set", boom)
        payload = {
            "customers": [{"id": "C1", "name": "A"}],
            "projects": [{"id": "P1", "customerId": "C1"}],
        }

        with pytest.raises(RuntimeError):
            backup_service.import_snapshot(payload)

        assert db_session.query(Customer).count() == 0


class TestFieldMapping:
    """Key spellings, defaults and embedded JSON lists."""

    def test_camel_case_wins_over_snake_case(self, db_session):
        payload = {
            "customers": [{"id": "C1", "name": "A", "linkedBrokerId": "B1", "linked_broker_id": "B2"}],
        }

        backup_service.import_snapshot(payload)

        assert db_session.get(Customer, "C1").linked_broker_id == "B1"

    def test_snake_and_camel_spellings_import_identically(self, db_session):
        payload = {
            "customers": [
                {"id": "C1", "name": "A", "linkedBrokerId": "B1"},
                {"id": "C2", "name": "A", "linked_broker_id": "B1"},
            ],
        }

        backup_service.import_snapshot(payload)

        first, second = db_session.get(Customer, "C1"), db_session.get(Customer, "C2")
        assert first.linked_broker_id == second.linked_broker_id == "B1"

    def test_blank_camel_case_falls_back_to_snake_case(self, db_session):
        payload = {"brokers": [{"id": "B1", "name": "X", "commissionRate": "", "commission_rate": "2.5"}]}

        backup_service.import_snapshot(payload)

        assert db_session.get(Broker, "B1").commission_rate == 2.5

    def test_legacy_project_spellings(self, db_session, customer):
        payload = {
            "projects": [{"id": "P1", "customerId": "C1", "saleValue": "1,500,000", "paymentCycle": "monthly"}],
        }

        backup_service.import_snapshot(payload)

        project = db_session.get(Project, "P1")
        assert project.sale == 1500000
        assert project.cycle == "monthly"

    def test_defaults_fill_missing_fields(self, db_session):
        payload = {
            "customers": [{"id": "C1"}],
            "receipts": [{"id": "R1", "amount": 10}],
            "inventory": [{"id": "INV1"}],
        }

        backup_service.import_snapshot(payload)

        customer = db_session.get(Customer, "C1")
        assert (customer.name, customer.type, customer.status) == ("", "customer", "active")
        receipt = db_session.get(Receipt, "R1")
        assert receipt.method == "cash"
        assert receipt.date
        item = db_session.get(InventoryItem, "INV1")
        assert item.status == "available"
        assert item.plot_features == "[]"

    def test_json_list_fields_accept_structured_or_encoded(self, db_session):
        payload = {
            "interactions": [
                {"id": "I1", "contacts": [{"name": "Sara"}]},
                {"id": "I2", "contacts": '[{"name": "Omar"}]'},
                {"id": "I3", "contacts": "garbage"},
            ],
            "inventory": [{"id": "INV1", "plotFeatures": ["corner", "park facing"]}],
        }

        stats = backup_service.import_snapshot(payload)

        assert stats["interactions"] == _stats(imported=3)
        assert db_session.get(Interaction, "I1").contacts == '[{"name":"Sara"}]'
        assert db_session.get(Interaction, "I2").contacts == '[{"name":"Omar"}]'
        assert db_session.get(Interaction, "I3").contacts == "[]"
        assert db_session.get(InventoryItem, "INV1").plot_features == '["corner","park facing"]'

    def test_existing_row_is_overwritten_but_keeps_created_at(self, db_session, customer):
        created_at = db_session.get(Customer, "C1").created_at
        payload = {
            "customers": [{"id": "C1", "name": "Renamed", "createdAt": "2001-01-01T00:00:00Z"}],
        }

        stats = backup_service.import_snapshot(payload)

        assert stats["customers"] == _stats(imported=1)
        refreshed = db_session.get(Customer, "C1")
        assert refreshed.name == "Renamed"
        assert refreshed.created_at == created_at
        assert db_session.query(Customer).count() == 1

    def test_new_row_takes_snapshot_timestamps(self, db_session):
        payload = {"customers": [{"id": "C1", "name": "A", "createdAt": "2023-05-01T10:00:00Z"}]}

        backup_service.import_snapshot(payload)

        assert db_session.get(Customer, "C1").created_at == datetime(2023, 5, 1, 10, 0)


class TestReceiptPolicy:
    """project.received under the two receipt import policies."""

    def test_increment_adds_on_every_import(self, db_session, project):
        payload = {"receipts": [{"id": "R1", "projectId": "P1", "amount": 200}]}

        backup_service.import_snapshot(payload)
        backup_service.import_snapshot(payload)

        assert db_session.get(Project, "P1").received == 400

    def test_recompute_is_idempotent(self, db_session, project):
        payload = {"receipts": [{"id": "R1", "projectId": "P1", "amount": 200}]}

        backup_service.import_snapshot(payload, receipt_policy="recompute")
        backup_service.import_snapshot(payload, receipt_policy="recompute")

        assert db_session.get(Project, "P1").received == 200

    def test_recompute_counts_receipts_already_stored(self, db_session, project, add_receipt):
        add_receipt("R0", "P1", 50)
        payload = {
            "projects": [{"id": "P1", "customerId": "C1", "received": 999}],
            "receipts": [{"id": "R1", "projectId": "P1", "amount": 200}],
        }

        backup_service.import_snapshot(payload, receipt_policy="recompute")

        assert db_session.get(Project, "P1").received == 250

    def test_recompute_rebuilds_the_project_a_receipt_left(self, db_session, project, customer):
        db_session.add(Project(id="P2", customer_id=customer.id, name="Shop 4"))
        db_session.commit()
        backup_service.import_snapshot(
            {"receipts": [{"id": "R1", "projectId": "P1", "amount": 200}]},
            receipt_policy="recompute",
        )

        backup_service.import_snapshot(
            {"receipts": [{"id": "R1", "projectId": "P2", "amount": 200}]},
            receipt_policy="recompute",
        )

        assert db_session.get(Project, "P1").received == 0
        assert db_session.get(Project, "P2").received == 200

    def test_recompute_after_receipt_loses_its_project(self, db_session, project):
        backup_service.import_snapshot(
            {"receipts": [{"id": "R1", "projectId": "P1", "amount": 200}]},
            receipt_policy="recompute",
        )

        backup_service.import_snapshot(
            {"receipts": [{"id": "R1", "amount": 200}]},
            receipt_policy="recompute",
        )

        assert db_session.get(Receipt, "R1").project_id is None
        assert db_session.get(Project, "P1").received == 0

    def test_unknown_policy_is_rejected(self, db_session):
        with pytest.raises(BackupError):
            backup_service.import_snapshot({}, receipt_policy="average")


class TestSettingsImport:
    def test_settings_are_upserted_per_key(self, db_session):
        settings_service.set_setting("currency", "USD")
        payload = {"settings": {"currency": "PKR", "reminders": {"days": 3}, "  ": 1}}

        stats = backup_service.import_snapshot(payload)

        assert stats["settings"] == _stats(imported=2, skipped=1)
        assert settings_service.get_all_settings() == {"currency": "PKR", "reminders": {"days": 3}}
        assert db_session.query(Setting).count() == 2


class TestPayloadValidation:
    @pytest.mark.parametrize("payload", [None, [], "backup", 42])
    def test_non_object_payload_is_rejected(self, db_session, payload):
        with pytest.raises(BackupError):
            backup_service.import_snapshot(payload)
