# (c) Copyright Datacraft, 2026
"""Tests for audit log integrity checksums."""
from datetime import datetime, timezone

from registrar.core.features.audit import ledger
from registrar.core.features.audit.schema import AuditLogEntry
from registrar.core.features.audit.security import (
    calculate_entry_checksum,
    verify_audit_entries,
)


def make_entry(entry_id, **kwargs) -> AuditLogEntry:
    entry = ledger.new_entry(
        kwargs.get("action", ledger.LETTER_SUBMITTED),
        ledger.ENTITY_LETTER,
        entry_id,
        "registry.clerk",
        kwargs.get("details", {"reference": f"REG/{entry_id}"}),
    )
    return entry.model_copy(update={"id": entry_id})


def test_verify_audit_entries_valid():
    """Untouched entries pass verification."""
    entries = [make_entry(1), make_entry(2), make_entry(3)]

    valid, checked, error = verify_audit_entries(entries)

    assert valid is True
    assert checked == 3
    assert error is None


def test_verify_audit_entries_tampered():
    """An edited entry is reported and verification stops there."""
    entries = [make_entry(1), make_entry(2), make_entry(3)]
    entries[1] = entries[1].model_copy(update={"details": {"reference": "FORGED"}})

    valid, checked, error = verify_audit_entries(entries)

    assert valid is False
    assert checked == 2
    assert "Audit entry 2 was modified" in error


def test_checksum_ignores_timezone_representation():
    """Naive UTC timestamps read back from SQLite verify like aware ones."""
    aware = AuditLogEntry(
        action=ledger.LETTER_VERIFIED,
        entity_type=ledger.ENTITY_LETTER,
        entity_id="1",
        actor_id="registry.clerk",
        timestamp=datetime(2026, 3, 1, 9, 30, 0, 125, tzinfo=timezone.utc),
    )
    naive = aware.model_copy(update={"timestamp": aware.timestamp.replace(tzinfo=None)})

    assert calculate_entry_checksum(aware) == calculate_entry_checksum(naive)


def test_checksum_covers_actor():
    entry = make_entry(1)
    other = entry.model_copy(update={"actor_id": "someone.else"})

    assert calculate_entry_checksum(entry) != calculate_entry_checksum(other)
