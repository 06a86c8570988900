# Overview: Whole-database snapshot export, import and clear.

"""
Backup service.

Import runs inside one transaction. Each record gets its own SAVEPOINT
(session.begin_nested) so a bad record is rolled back on its own, counted,
and the rest of the snapshot still commits. Only failures outside a record
boundary (lost connection, a broken lookup query) abort the whole import.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Callable

from ..extensions import db
from ..models import (
    Broker,
    CommissionPayment,
    Customer,
    Interaction,
    InventoryItem,
    MasterProject,
    Project,
    Receipt,
    Setting,
)
from crm.time_utils import to_utc_z, utcnow
from . import receipt_service, settings_service
from .concurrency import run_with_retry
from .snapshot_schemas import (
    COMMISSION_PAYMENTS,
    CUSTOMERS,
    BROKERS,
    INTERACTIONS,
    INVENTORY,
    MASTER_PROJECTS,
    PROJECTS,
    RECEIPTS,
    SCHEMAS,
    EntitySchema,
    decode_json_field,
)

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "4.0"
SETTINGS_SECTION = "settings"

RECEIPT_POLICY_INCREMENT = "increment"
RECEIPT_POLICY_RECOMPUTE = "recompute"
RECEIPT_POLICIES = {RECEIPT_POLICY_INCREMENT, RECEIPT_POLICY_RECOMPUTE}

# Children before parents so foreign keys never block a delete.
CLEAR_ORDER = (
    CommissionPayment,
    Receipt,
    Interaction,
    InventoryItem,
    Project,
    Broker,
    Customer,
    MasterProject,
    Setting,
)


class BackupError(ValueError):
    """Raised when a snapshot cannot be processed at all."""


@dataclass
class EntityStats:
    imported: int = 0
    skipped: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class ImportContext:
    session: Any
    receipt_policy: str
    stats: dict[str, EntityStats] = field(default_factory=dict)
    customer_ids: set[str] = field(default_factory=set)
    broker_ids: set[str] = field(default_factory=set)
    project_ids: set[str] = field(default_factory=set)
    receipt_project_ids: set[str] = field(default_factory=set)


def _id_set(session, model) -> set[str]:
    return {str(value).strip() for (value,) in session.query(model.id).all()}


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def _export_rows(session, model, json_columns: dict[str, bool] | None = None) -> list[dict[str, Any]]:
    rows = []
    for instance in session.query(model).order_by(model.id.asc()).all():
        row = instance.to_dict()
        for column, strict in (json_columns or {}).items():
            row[column] = decode_json_field(row.get(column), strict=strict)
        rows.append(row)
    return rows


def export_snapshot(*, session=None, version: str | None = None) -> dict[str, Any]:
    """
    Read every table into one snapshot document.

    Embedded list columns are returned structured. Unreadable installments
    fail the export; unreadable contacts and plot features export as [].
    Any read failure propagates; there is no partial snapshot.
    """
    session = session or db.session

    def _read() -> dict[str, Any]:
        sections = {
            name: _export_rows(session, schema.model, schema.json_columns)
            for name, schema in SCHEMAS.items()
        }
        sections[SETTINGS_SECTION] = settings_service.get_all_settings(session=session)
        return sections

    sections = run_with_retry(_read, session=session)
    snapshot = {
        "version": version or SNAPSHOT_VERSION,
        "exportDate": to_utc_z(utcnow()),
    }
    snapshot.update(sections)
    logger.info(
        "Exported snapshot: %s",
        ", ".join(f"{name}={len(rows)}" for name, rows in sections.items()),
    )
    return snapshot


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

def _attempt(ctx: ImportContext, schema_label: str, record_id: str, operation: Callable[[], None]) -> bool:
    """Run one record's writes inside a savepoint; roll back only that record on failure."""
    session = ctx.session
    nested = session.begin_nested()
    try:
        operation()
        session.flush()
        nested.commit()
        return True
    except Exception as exc:  # noqa: BLE001
        nested.rollback()
        logger.error("Error importing %s %s: %s", schema_label, record_id, exc)
        return False


def _upsert(session, schema: EntitySchema, record_id: str, values: dict[str, Any]):
    """Insert by natural id, or overwrite every mutable column of the existing row."""
    now = utcnow()
    instance = session.get(schema.model, record_id)
    if instance is None:
        instance = schema.model(id=record_id)
        for column, value in values.items():
            setattr(instance, column, value)
        instance.created_at = values.get("created_at") or now
        instance.updated_at = values.get("updated_at") or now
        session.add(instance)
        return instance

    insert_only = schema.insert_only_columns
    for column, value in values.items():
        if column in insert_only or column == "updated_at":
            continue
        setattr(instance, column, value)
    instance.updated_at = now
    return instance


def _records(payload: dict[str, Any], schema: EntitySchema) -> list[Any] | None:
    section = payload.get(schema.name)
    if not isinstance(section, list):
        return None
    return section


def _import_section(
    ctx: ImportContext,
    payload: dict[str, Any],
    schema: EntitySchema,
    check: Callable[[str, dict[str, Any]], dict[str, Any] | None] | None = None,
    before: Callable[[str], None] | None = None,
    after: Callable[[dict[str, Any]], None] | None = None,
) -> None:
    """
    Import one entity section.

    `check` runs before the savepoint and may return column overrides, or
    None to skip the record. `before` and `after` run inside the record's
    savepoint, before and after the row is written.
    """
    stats = ctx.stats[schema.name]
    records = _records(payload, schema)
    if records is None:
        return

    logger.info("Importing %d %s...", len(records), schema.name)
    for raw in records:
        if not isinstance(raw, dict):
            stats.skipped += 1
            continue
        record_id = schema.record_id(raw)
        if not record_id:
            logger.warning("%s missing id, skipping", schema.label.capitalize())
            stats.skipped += 1
            continue

        overrides: dict[str, Any] = {}
        if check is not None:
            overrides = check(record_id, raw)
            if overrides is None:
                stats.skipped += 1
                continue

        def _write(raw=raw, record_id=record_id, overrides=overrides):
            values = schema.normalize_record(raw)
            values.update(overrides)
            if before is not None:
                before(record_id)
            _upsert(ctx.session, schema, record_id, values)
            if after is not None:
                after(values)

        if _attempt(ctx, schema.label, record_id, _write):
            stats.imported += 1
        else:
            stats.errors += 1

    logger.info(
        "Imported %d %s (%d errors, %d skipped)",
        stats.imported, schema.name, stats.errors, stats.skipped,
    )


def _check_project(ctx: ImportContext):
    def check(record_id: str, raw: dict[str, Any]) -> dict[str, Any] | None:
        customer_ref = PROJECTS.reference(raw, "customer_id")
        if not customer_ref:
            logger.warning("Project %s has no customer_id, skipping", record_id)
            return None
        if customer_ref not in ctx.customer_ids:
            logger.warning(
                "Project %s references non-existent customer %r, skipping",
                record_id, customer_ref,
            )
            return None

        broker_ref = PROJECTS.reference(raw, "broker_id")
        if broker_ref and broker_ref not in ctx.broker_ids:
            logger.info("Project %s broker %r not found, importing without broker", record_id, broker_ref)
            broker_ref = None
        return {"customer_id": customer_ref, "broker_id": broker_ref}

    return check


def _check_receipt(ctx: ImportContext):
    def check(record_id: str, raw: dict[str, Any]) -> dict[str, Any] | None:
        project_ref = RECEIPTS.reference(raw, "project_id")
        if project_ref and project_ref not in ctx.project_ids:
            logger.warning(
                "Receipt %s references non-existent project %r, skipping",
                record_id, project_ref,
            )
            return None
        return {}

    return check


def _before_receipt(ctx: ImportContext):
    def before(record_id: str) -> None:
        if ctx.receipt_policy != RECEIPT_POLICY_RECOMPUTE:
            return
        existing = ctx.session.get(Receipt, record_id)
        if existing is not None and existing.project_id:
            # The project the receipt is leaving needs its total rebuilt too
            ctx.receipt_project_ids.add(existing.project_id)

    return before


def _after_receipt(ctx: ImportContext):
    def after(values: dict[str, Any]) -> None:
        project_id = values.get("project_id")
        if not project_id:
            return
        if ctx.receipt_policy == RECEIPT_POLICY_RECOMPUTE:
            ctx.receipt_project_ids.add(project_id)
        else:
            receipt_service.apply_to_project(project_id, values.get("amount") or 0, session=ctx.session)

    return after


def _import_settings(ctx: ImportContext, payload: dict[str, Any]) -> None:
    stats = ctx.stats[SETTINGS_SECTION]
    settings = payload.get(SETTINGS_SECTION)
    if not isinstance(settings, dict):
        return

    logger.info("Importing %d settings...", len(settings))
    for key, value in settings.items():
        key = str(key).strip()
        if not key:
            stats.skipped += 1
            continue

        def _write(key=key, value=value):
            settings_service.upsert_setting(key, value, session=ctx.session)

        if _attempt(ctx, "setting", key, _write):
            stats.imported += 1
        else:
            stats.errors += 1
    logger.info("Imported %d settings (%d errors)", stats.imported, stats.errors)


def _log_shape(payload: dict[str, Any]) -> None:
    shape = {
        name: len(payload[name]) if isinstance(payload.get(name), list) else None
        for name in SCHEMAS
    }
    settings = payload.get(SETTINGS_SECTION)
    shape[SETTINGS_SECTION] = len(settings) if isinstance(settings, dict) else None
    logger.info("Importing backup version=%s: %s", payload.get("version"), shape)


def import_snapshot(
    payload: Any,
    *,
    session=None,
    receipt_policy: str = RECEIPT_POLICY_INCREMENT,
) -> dict[str, dict[str, int]]:
    """
    Merge a snapshot into the store and return per-entity stats.

    Sections are processed parents-first: customers, brokers, projects,
    receipts, interactions, inventory, master projects, commission payments,
    settings. Reference sets are read once, right before the section that
    needs them.
    """
    if not isinstance(payload, dict):
        raise BackupError("No backup data provided")
    if receipt_policy not in RECEIPT_POLICIES:
        raise BackupError(f"Unsupported receipt import policy: {receipt_policy}")

    session = session or db.session
    ctx = ImportContext(session=session, receipt_policy=receipt_policy)
    ctx.stats = {name: EntityStats() for name in SCHEMAS}
    ctx.stats[SETTINGS_SECTION] = EntityStats()
    _log_shape(payload)

    try:
        _import_section(ctx, payload, CUSTOMERS)
        _import_section(ctx, payload, BROKERS)

        if _records(payload, PROJECTS) is not None:
            ctx.customer_ids = _id_set(session, Customer)
            ctx.broker_ids = _id_set(session, Broker)
            logger.info(
                "Found %d customers and %d brokers in database",
                len(ctx.customer_ids), len(ctx.broker_ids),
            )
        _import_section(ctx, payload, PROJECTS, check=_check_project(ctx))

        if _records(payload, RECEIPTS) is not None:
            ctx.project_ids = _id_set(session, Project)
        _import_section(
            ctx, payload, RECEIPTS,
            check=_check_receipt(ctx), before=_before_receipt(ctx), after=_after_receipt(ctx),
        )
        if ctx.receipt_project_ids:
            receipt_service.recompute_project_received(ctx.receipt_project_ids, session=session)

        _import_section(ctx, payload, INTERACTIONS)
        _import_section(ctx, payload, INVENTORY)
        _import_section(ctx, payload, MASTER_PROJECTS)
        _import_section(ctx, payload, COMMISSION_PAYMENTS)
        _import_settings(ctx, payload)

        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Import transaction failed; rolled back")
        raise

    result = {name: stats.to_dict() for name, stats in ctx.stats.items()}
    logger.info("Backup import completed: %s", result)
    return result


# ---------------------------------------------------------------------------
# Clear
# ---------------------------------------------------------------------------

def clear_all(*, session=None) -> dict[str, int]:
    """Delete every row, children first, in one transaction."""
    session = session or db.session
    deleted: dict[str, int] = {}
    try:
        for model in CLEAR_ORDER:
            deleted[model.__tablename__] = session.query(model).delete(synchronize_session=False)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Clear failed; rolled back")
        raise
    logger.info("All data cleared: %s", deleted)
    return deleted
