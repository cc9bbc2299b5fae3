# (c) Copyright Datacraft, 2026
"""Per-key asyncio locks."""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable


class KeyedLock:
	"""
	One asyncio.Lock per key.

	A lock entry lives only while some task holds or waits on it, so the
	table does not grow with the number of letters ever touched. Keys never
	block each other.
	"""

	def __init__(self):
		self._locks: dict[Hashable, asyncio.Lock] = {}
		self._users: dict[Hashable, int] = {}

	@asynccontextmanager
	async def hold(self, key: Hashable) -> AsyncIterator[None]:
		lock = self._locks.get(key)
		if lock is None:
			lock = asyncio.Lock()
			self._locks[key] = lock
			self._users[key] = 0
		self._users[key] += 1

		try:
			async with lock:
				yield
		finally:
			self._users[key] -= 1
			if self._users[key] == 0:
				del self._users[key]
				del self._locks[key]

	def locked(self, key: Hashable) -> bool:
		lock = self._locks.get(key)
		return lock is not None and lock.locked()

	def __len__(self) -> int:
		return len(self._locks)
