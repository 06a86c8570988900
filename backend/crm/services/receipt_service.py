# Overview: Receipt operations that keep Project.received in step with receipts.

"""
Receipt service.

Invariant: for every project, received == sum(amount) of the receipts that
reference it. Every mutation goes through apply_to_project so the adjustment
happens in the same transaction as the receipt write.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Project, Receipt
from ..validation import ValidationError, parse_amount
from crm.time_utils import utcnow
from .snapshot_schemas import MISSING, RECEIPTS

logger = logging.getLogger(__name__)


class ReceiptError(ValueError):
    """Raised when a receipt operation is rejected."""


class ReceiptNotFoundError(ReceiptError):
    pass


def apply_to_project(project_id: str | None, delta: float, *, session=None) -> Project | None:
    """Add delta to the project's received total; unknown projects are ignored."""
    session = session or db.session
    if not project_id or not delta:
        return None
    project = session.get(Project, project_id)
    if project is None:
        return None
    project.received = (project.received or 0) + delta
    return project


def recompute_project_received(project_ids, *, session=None) -> dict[str, float]:
    """Rebuild received from the receipt table for the given projects."""
    session = session or db.session
    totals: dict[str, float] = {}
    for project_id in sorted(set(project_ids)):
        project = session.get(Project, project_id)
        if project is None:
            continue
        total = (
            session.query(func.coalesce(func.sum(Receipt.amount), 0))
            .filter(Receipt.project_id == project_id)
            .scalar()
        )
        project.received = float(total or 0)
        totals[project_id] = project.received
    return totals


def _require_project(project_id: str | None, session) -> None:
    if project_id and session.get(Project, project_id) is None:
        raise ReceiptError(f"Project not found: {project_id}")


def _normalize(data: dict[str, Any], *, partial: bool) -> dict[str, Any]:
    try:
        values = RECEIPTS.normalize_record(data, partial=partial)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    amount = RECEIPTS.lookup(data, "amount", keep_null=partial)
    if amount is not MISSING:
        values["amount"] = parse_amount(amount)
    elif not partial:
        raise ValidationError("amount is required")
    values.pop("created_at", None)
    values.pop("updated_at", None)
    return values


def list_receipts(*, session=None) -> list[Receipt]:
    session = session or db.session
    return (
        session.query(Receipt)
        .order_by(Receipt.date.desc(), Receipt.created_at.desc())
        .all()
    )


def get_receipt(receipt_id: str, *, session=None) -> Receipt:
    session = session or db.session
    receipt = session.get(Receipt, receipt_id)
    if receipt is None:
        raise ReceiptNotFoundError("Receipt not found")
    return receipt


def _new_receipt_id() -> str:
    return f"rcpt_{uuid.uuid4().hex[:12]}"


def _save_receipt(session, receipt_id: str, values: dict[str, Any]) -> Receipt:
    """Insert or fully overwrite one receipt, moving its amount between projects."""
    now = utcnow()
    receipt = session.get(Receipt, receipt_id)
    if receipt is None:
        receipt = Receipt(id=receipt_id, created_at=now, updated_at=now, **values)
        session.add(receipt)
        apply_to_project(receipt.project_id, receipt.amount, session=session)
        return receipt

    old_project_id, old_amount = receipt.project_id, receipt.amount or 0
    for column, value in values.items():
        setattr(receipt, column, value)
    receipt.updated_at = now
    apply_to_project(old_project_id, -old_amount, session=session)
    apply_to_project(receipt.project_id, receipt.amount, session=session)
    return receipt


def create_receipt(data: dict[str, Any], *, session=None) -> Receipt:
    session = session or db.session
    values = _normalize(data, partial=False)
    receipt_id = RECEIPTS.record_id(data) or _new_receipt_id()
    if session.get(Receipt, receipt_id) is not None:
        raise ReceiptError(f"Receipt already exists: {receipt_id}")
    _require_project(values.get("project_id"), session)

    receipt = _save_receipt(session, receipt_id, values)
    session.commit()
    return receipt


def bulk_create_receipts(records: list[Any], *, session=None) -> list[Receipt]:
    """
    Upsert a batch of receipts in one transaction.

    Each receipt is written inside its own savepoint; a rejected receipt is
    logged and left out of the result while the rest still commit. Existing
    ids are overwritten, so re-sending a receipt adjusts project totals by
    the difference instead of adding the amount again.
    """
    session = session or db.session
    if not isinstance(records, list):
        raise ReceiptError("receipts must be a list")

    saved: list[Receipt] = []
    for raw in records:
        if not isinstance(raw, dict):
            logger.warning("Skipping non-object receipt entry: %r", raw)
            continue
        receipt_id = RECEIPTS.record_id(raw) or _new_receipt_id()
        nested = session.begin_nested()
        try:
            values = _normalize(raw, partial=False)
            _require_project(values.get("project_id"), session)
            receipt = _save_receipt(session, receipt_id, values)
            session.flush()
            nested.commit()
        except (ValueError, SQLAlchemyError) as exc:
            nested.rollback()
            logger.error("Error saving receipt %s: %s", receipt_id, exc)
            continue
        saved.append(receipt)

    session.commit()
    logger.info("Bulk saved %d of %d receipts", len(saved), len(records))
    return saved


def update_receipt(receipt_id: str, data: dict[str, Any], *, session=None) -> Receipt:
    session = session or db.session
    receipt = get_receipt(receipt_id, session=session)
    values = _normalize(data, partial=True)

    old_project_id, old_amount = receipt.project_id, receipt.amount or 0
    new_project_id = values.get("project_id", old_project_id)
    new_amount = values.get("amount", old_amount)
    if new_project_id != old_project_id:
        _require_project(new_project_id, session)

    for column, value in values.items():
        setattr(receipt, column, value)
    receipt.updated_at = utcnow()

    if new_project_id == old_project_id:
        apply_to_project(old_project_id, new_amount - old_amount, session=session)
    else:
        apply_to_project(old_project_id, -old_amount, session=session)
        apply_to_project(new_project_id, new_amount, session=session)

    session.commit()
    return receipt


def delete_receipt(receipt_id: str, *, session=None) -> None:
    session = session or db.session
    receipt = get_receipt(receipt_id, session=session)
    apply_to_project(receipt.project_id, -(receipt.amount or 0), session=session)
    session.delete(receipt)
    session.commit()
