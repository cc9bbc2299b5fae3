# (c) Copyright Datacraft, 2026
"""Tamper evidence for audit log entries."""
import hashlib
import json
import logging
from typing import Iterable, Optional

from .schema import AuditLogEntry

logger = logging.getLogger(__name__)


def _canonical_timestamp(entry: AuditLogEntry) -> str:
	# SQLite hands back naive datetimes; every timestamp is written in UTC
	return entry.timestamp.replace(tzinfo=None).isoformat(timespec="microseconds")


def calculate_entry_checksum(entry: AuditLogEntry) -> str:
	"""
	Calculate the SHA-256 checksum of an audit log entry.

	The checksum covers timestamp, action, entity type/id, actor and details,
	serialized as canonical JSON. Entries are not chained, so appends never
	wait for one another.
	"""
	payload = {
		"timestamp": _canonical_timestamp(entry),
		"action": entry.action,
		"entity_type": entry.entity_type,
		"entity_id": entry.entity_id,
		"actor_id": entry.actor_id,
		"details": entry.details,
	}
	data = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
	return hashlib.sha256(data.encode()).hexdigest()


def verify_audit_entries(
	entries: Iterable[AuditLogEntry],
) -> tuple[bool, int, Optional[str]]:
	"""
	Recompute checksums of the given entries.
	Returns (success, entries_checked, error_message).
	"""
	checked = 0
	for entry in entries:
		checked += 1
		expected = calculate_entry_checksum(entry)
		if entry.checksum != expected:
			msg = (
				f"Audit entry {entry.id} was modified: "
				f"expected checksum {expected}, got {entry.checksum}"
			)
			logger.error(msg)
			return False, checked, msg

	return True, checked, None
