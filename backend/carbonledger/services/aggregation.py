# Path: backend/carbonledger/services/aggregation.py
"""
Report payload aggregation.

Pure functions over already-fetched emission and supplier records. Nothing in
here touches the database, the clock or the network: ``generated_at`` is an
input, and records are folded in id order, so the same inputs always produce
the same payload.

Payload keys are camelCase because downstream report renderers consume this
document verbatim.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Sequence

from carbonledger.exceptions.ledger_exceptions import DataIntegrityError

SCOPE_KEYS = {1: "scope1", 2: "scope2", 3: "scope3"}


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def _ordered(records: Iterable[Any]) -> List[Any]:
    return sorted(records, key=lambda record: record.id)


def validate_scopes(emission_records: Sequence[Any]) -> None:
    for record in emission_records:
        if record.scope not in SCOPE_KEYS:
            raise DataIntegrityError(
                f"Emission record {record.id} has scope {record.scope!r}, expected 1, 2 or 3"
            )


def aggregate_emissions(emission_records: Sequence[Any]) -> Dict[str, Any]:
    """Per-scope totals plus the grand total. Categories are reserved and always empty."""
    validate_scopes(emission_records)

    totals = {key: 0.0 for key in SCOPE_KEYS.values()}
    for record in _ordered(emission_records):
        totals[SCOPE_KEYS[record.scope]] += float(record.total_co2e or 0.0)

    emissions: Dict[str, Any] = {
        key: {"total": total, "categories": []}
        for key, total in totals.items()
    }
    emissions["grandTotal"] = totals["scope1"] + totals["scope2"] + totals["scope3"]
    return emissions


def project_suppliers(supplier_records: Sequence[Any]) -> List[Dict[str, Any]]:
    return [
        {
            "name": supplier.company_name,
            "type": _enum_value(supplier.relationship_type),
            "emissions": float(supplier.total_co2e or 0.0),
            "status": _enum_value(supplier.connection_status),
        }
        for supplier in _ordered(supplier_records)
    ]


def build_report_payload(
    emission_records: Sequence[Any],
    supplier_records: Sequence[Any],
    generated_at: datetime,
) -> Dict[str, Any]:
    """
    Build the report document for one job.

    Args:
        emission_records: Owner's emission records already filtered to the job's parameters
        supplier_records: Owner's active suppliers already filtered to the job's parameters
        generated_at: Timestamp stamped into the payload

    Returns:
        ``{"emissions": {...}, "suppliers": [...], "generatedAt": iso8601}``

    Raises:
        DataIntegrityError: an emission record carries a scope outside 1..3
    """
    return {
        "emissions": aggregate_emissions(emission_records),
        "suppliers": project_suppliers(supplier_records),
        "generatedAt": generated_at.isoformat(),
    }
