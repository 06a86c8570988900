# Overview: Field-alias tables and record normalization for backup snapshots.

"""
Snapshot schemas.

Snapshots come from our own exports (snake_case keys), from the browser
cache of the old frontend (camelCase keys), and from hand-edited files that
mix both. Every entity declares its storage columns once; the alias table
derived from that declaration is the only place spellings are resolved.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable

from ..models import (
    Broker,
    CommissionPayment,
    Customer,
    Interaction,
    InventoryItem,
    MasterProject,
    Project,
    Receipt,
)
from crm.time_utils import coerce_datetime, to_utc_z, utcnow


MISSING = object()
ABSENT_REFERENCES = {"", "null", "undefined"}


def _camel(column: str) -> str:
    head, *rest = column.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    text = str(value).strip()
    return text if text else None


def _to_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    return float(text)


def _to_int(value: Any) -> int | None:
    number = _to_float(value)
    return None if number is None else int(number)


def _now_iso() -> str:
    return to_utc_z(utcnow())


def natural_id(value: Any) -> str | None:
    """Trimmed string identity; blank means the record has no id."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def reference_id(value: Any) -> str | None:
    """Trimmed foreign id; blanks and the literals "null"/"undefined" are absent."""
    if value is None:
        return None
    text = str(value).strip()
    if text in ABSENT_REFERENCES:
        return None
    return text


def load_json_value(value: Any) -> Any:
    """Decode stored JSON text; already-structured values pass through."""
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def decode_json_field(value: Any, *, strict: bool = False) -> list:
    """
    Normalize an embedded list field to its structured form.

    The field arrives either structured (a list) or encoded (JSON text).
    With strict=False a field that cannot be read as a list becomes [];
    with strict=True it raises ValueError.
    """
    if value is None or value == "":
        return []
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            if strict:
                raise
            return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if strict:
        raise ValueError(f"expected a JSON array, got {type(value).__name__}")
    return []


def encode_json_field(value: list) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class Field:
    column: str
    default: Any = None
    coerce: Callable[[Any], Any] = _to_text
    legacy: tuple[str, ...] = ()
    # "strict" / "lenient" for embedded JSON lists
    json_list: str | None = None
    insert_only: bool = False

    @property
    def spellings(self) -> tuple[str, ...]:
        names = [_camel(self.column), self.column, *self.legacy]
        return tuple(dict.fromkeys(names))

    def default_value(self) -> Any:
        return self.default() if callable(self.default) else self.default


def _timestamps() -> tuple[Field, ...]:
    return (
        Field("created_at", coerce=coerce_datetime, insert_only=True),
        Field("updated_at", coerce=coerce_datetime),
    )


@dataclass
class EntitySchema:
    name: str
    model: type
    fields: tuple[Field, ...]
    label: str = ""
    aliases: dict[str, tuple[str, ...]] = field(init=False)

    def __post_init__(self) -> None:
        self.aliases = {f.column: f.spellings for f in self.fields}
        self.aliases["id"] = ("id",)
        if not self.label:
            self.label = self.name

    @property
    def json_columns(self) -> dict[str, bool]:
        return {f.column: f.json_list == "strict" for f in self.fields if f.json_list}

    @property
    def insert_only_columns(self) -> set[str]:
        return {f.column for f in self.fields if f.insert_only}

    def lookup(self, raw: dict[str, Any], column: str, *, keep_null: bool = False) -> Any:
        """
        First non-blank value among the column's spellings, camelCase first.

        With keep_null=True a spelling present with an explicit null yields
        None instead of MISSING, so a partial update can clear the column.
        """
        explicit_null = False
        for name in self.aliases.get(column, (column,)):
            if name not in raw:
                continue
            value = raw[name]
            if value is None:
                explicit_null = True
            elif value != "":
                return value
        if keep_null and explicit_null:
            return None
        return MISSING

    def record_id(self, raw: dict[str, Any]) -> str | None:
        value = self.lookup(raw, "id")
        return None if value is MISSING else natural_id(value)

    def reference(self, raw: dict[str, Any], column: str) -> str | None:
        value = self.lookup(raw, column)
        return None if value is MISSING else reference_id(value)

    def normalize_record(self, raw: dict[str, Any], *, partial: bool = False) -> dict[str, Any]:
        """
        Map a snapshot record onto storage columns.

        Embedded lists come back JSON-encoded, ready to store. With
        partial=True only columns present in the record are returned, and an
        explicit null resets its column to the default.
        Coercion failures raise ValueError.
        """
        normalized: dict[str, Any] = {}
        for f in self.fields:
            value = self.lookup(raw, f.column, keep_null=partial)
            if value is MISSING:
                if partial:
                    continue
                value = None
            if f.json_list:
                items = decode_json_field(value, strict=f.json_list == "strict")
                normalized[f.column] = encode_json_field(items)
                continue
            coerced = f.coerce(value) if value is not None else None
            normalized[f.column] = f.default_value() if coerced is None else coerced
        return normalized


CUSTOMERS = EntitySchema(
    name="customers",
    model=Customer,
    label="customer",
    fields=(
        Field("name", default=""),
        Field("cnic"),
        Field("phone"),
        Field("email"),
        Field("company"),
        Field("address"),
        Field("type", default="customer"),
        Field("status", default="active"),
        Field("linked_broker_id", coerce=reference_id),
        *_timestamps(),
    ),
)

BROKERS = EntitySchema(
    name="brokers",
    model=Broker,
    label="broker",
    fields=(
        Field("name", default=""),
        Field("phone"),
        Field("cnic"),
        Field("email"),
        Field("address"),
        Field("company"),
        Field("commission_rate", default=1, coerce=_to_float),
        Field("bank_details"),
        Field("notes"),
        Field("status", default="active"),
        Field("linked_customer_id", coerce=reference_id),
        *_timestamps(),
    ),
)

PROJECTS = EntitySchema(
    name="projects",
    model=Project,
    label="project",
    fields=(
        Field("customer_id", coerce=reference_id),
        Field("broker_id", coerce=reference_id),
        Field("broker_commission_rate", default=1, coerce=_to_float),
        Field("company_rep_id", coerce=reference_id),
        Field("company_rep_commission_rate", default=1, coerce=_to_float),
        Field("name", default=""),
        Field("unit"),
        Field("marlas", default=0, coerce=_to_float),
        Field("rate", default=0, coerce=_to_float),
        Field("sale", default=0, coerce=_to_float, legacy=("saleValue", "sale_value")),
        Field("received", default=0, coerce=_to_float),
        Field("status", default="active"),
        Field("cycle", default="bi_annual", legacy=("paymentCycle", "payment_cycle")),
        Field("notes"),
        Field("installments", json_list="strict"),
        *_timestamps(),
    ),
)

RECEIPTS = EntitySchema(
    name="receipts",
    model=Receipt,
    label="receipt",
    fields=(
        Field("customer_id", coerce=reference_id),
        Field("project_id", coerce=reference_id),
        Field("installment_id", coerce=reference_id),
        Field("amount", default=0, coerce=_to_float),
        Field("date", default=_now_iso),
        Field("method", default="cash"),
        Field("reference"),
        Field("notes"),
        Field("receipt_number"),
        Field("customer_name"),
        Field("project_name"),
        *_timestamps(),
    ),
)

INTERACTIONS = EntitySchema(
    name="interactions",
    model=Interaction,
    label="interaction",
    fields=(
        Field("contact_type", default="customer"),
        Field("customer_id", coerce=reference_id),
        Field("broker_id", coerce=reference_id),
        Field("type", default="call"),
        Field("status", default="follow_up"),
        Field("priority", default="medium"),
        Field("date", default=_now_iso),
        Field("notes"),
        Field("next_follow_up"),
        Field("contacts", json_list="lenient"),
        *_timestamps(),
    ),
)

INVENTORY = EntitySchema(
    name="inventory",
    model=InventoryItem,
    label="inventory item",
    fields=(
        Field("project_name"),
        Field("block"),
        Field("unit_shop_number"),
        Field("unit"),
        Field("unit_type"),
        Field("marlas", default=0, coerce=_to_float),
        Field("rate_per_marla", default=0, coerce=_to_float),
        Field("total_value", default=0, coerce=_to_float),
        Field("sale_value", default=0, coerce=_to_float),
        Field("plot_features", json_list="lenient"),
        Field("plot_feature"),
        Field("status", default="available"),
        Field("transaction_id", coerce=reference_id),
        Field("customer_id", coerce=reference_id),
        *_timestamps(),
    ),
)

MASTER_PROJECTS = EntitySchema(
    name="masterProjects",
    model=MasterProject,
    label="master project",
    fields=(
        Field("name", default=""),
        Field("description"),
        Field("location"),
        Field("total_units", default=0, coerce=_to_int),
        Field("available_units", default=0, coerce=_to_int),
        Field("sold_units", default=0, coerce=_to_int),
        Field("reserved_units", default=0, coerce=_to_int),
        Field("blocked_units", default=0, coerce=_to_int),
        Field("total_sale_value", default=0, coerce=_to_float),
        Field("total_received", default=0, coerce=_to_float),
        Field("total_receivable", default=0, coerce=_to_float),
        Field("total_overdue", default=0, coerce=_to_float),
        Field("total_broker_commission", default=0, coerce=_to_float),
        Field("total_broker_commission_paid", default=0, coerce=_to_float),
        Field("total_company_rep_commission", default=0, coerce=_to_float),
        Field("total_company_rep_commission_paid", default=0, coerce=_to_float),
        *_timestamps(),
    ),
)

COMMISSION_PAYMENTS = EntitySchema(
    name="commissionPayments",
    model=CommissionPayment,
    label="commission payment",
    fields=(
        Field("project_id", coerce=reference_id),
        Field("recipient_id", coerce=reference_id),
        Field("recipient_type"),
        Field("recipient_name"),
        Field("amount", default=0, coerce=_to_float),
        Field("paid_amount", default=0, coerce=_to_float),
        Field("remaining_amount", default=0, coerce=_to_float),
        Field("payment_date"),
        Field("payment_method"),
        Field("payment_reference"),
        Field("notes"),
        Field("status", default="pending"),
        *_timestamps(),
    ),
)

# Import order: parents before children.
SCHEMAS: dict[str, EntitySchema] = {
    schema.name: schema
    for schema in (
        CUSTOMERS,
        BROKERS,
        PROJECTS,
        RECEIPTS,
        INTERACTIONS,
        INVENTORY,
        MASTER_PROJECTS,
        COMMISSION_PAYMENTS,
    )
}
