# (c) Copyright Datacraft, 2026
from datetime import datetime, timezone


def utc_now() -> datetime:
	return datetime.now(timezone.utc)
