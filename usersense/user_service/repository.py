"""
File-backed user repository.

Keeps the full record list in memory and rewrites ``users.json`` after every
mutation.  One asyncio lock serializes initialize, reads and writes; file I/O
runs in a worker thread while the lock is held.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from datetime import datetime
from typing import Optional, Protocol, runtime_checkable
from uuid import UUID

from pydantic import TypeAdapter

from ..core.exceptions import DuplicateEmailError, DuplicateRecordError, RecordNotFoundError
from ..schemas.users import User
from ..utils.logger import get_logger

logger = get_logger(__name__)

_USERS_ADAPTER = TypeAdapter(list[User])


@runtime_checkable
class UserRepository(Protocol):
    """Record store used by the user service and the analyze workflow."""

    async def get_all(self) -> list[User]: ...

    async def get_by_id(self, user_id: UUID) -> Optional[User]: ...

    async def add(self, user: User) -> None: ...

    async def update(self, user: User) -> None: ...

    async def apply_analysis(
        self,
        user_id: UUID,
        sentiment_score: Optional[float],
        tags: list[str],
        engagement_level: Optional[str],
        analyzed_at: datetime,
    ) -> User: ...

    async def delete(self, user_id: UUID) -> None: ...


class FileUserRepository:
    """
    JSON-file record store.

    Returned records are copies: mutating one has no effect until it is
    passed back through :meth:`update`.
    """

    def __init__(self, file_path: str | Path):
        """
        Initialize the repository.

        Args:
            file_path: Location of the JSON file; its directory is created on
                first write.
        """
        self.file_path = Path(file_path)
        self._lock = asyncio.Lock()
        self._users: list[User] = []

    # -- file I/O (called with the lock held) -----------------------------

    def _read_file(self) -> list[User]:
        if not self.file_path.exists():
            return []
        raw = self.file_path.read_text(encoding="utf-8")
        if not raw.strip():
            return []
        return _USERS_ADAPTER.validate_json(raw)

    def _write_file(self, users: list[User]) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        payload = _USERS_ADAPTER.dump_json(users, by_alias=True, indent=2)
        tmp_path = self.file_path.with_suffix(self.file_path.suffix + ".tmp")
        tmp_path.write_bytes(payload)
        os.replace(tmp_path, self.file_path)

    async def _save(self) -> None:
        await asyncio.to_thread(self._write_file, list(self._users))

    # -- operations -------------------------------------------------------

    async def initialize(self) -> None:
        """Load records from disk (empty store when the file is absent or blank)."""
        async with self._lock:
            self._users = await asyncio.to_thread(self._read_file)
            logger.info("Loaded %d users from %s", len(self._users), self.file_path)

    async def get_all(self) -> list[User]:
        async with self._lock:
            return [user.model_copy(deep=True) for user in self._users]

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        async with self._lock:
            for user in self._users:
                if user.id == user_id:
                    return user.model_copy(deep=True)
            return None

    async def add(self, user: User) -> None:
        """
        Append a new record and persist.

        Raises:
            DuplicateRecordError: If a record with the same id already exists.
            DuplicateEmailError: If another record has the same email
                (case-insensitive).
        """
        async with self._lock:
            if any(existing.id == user.id for existing in self._users):
                raise DuplicateRecordError("User already exists.", record_id=user.id)

            email = user.email.casefold()
            if any(existing.email.casefold() == email for existing in self._users):
                raise DuplicateEmailError("Email already exists.", field="email")

            self._users.append(user.model_copy(deep=True))
            await self._save()

    async def update(self, user: User) -> None:
        """
        Replace the record with the same id and persist.

        Raises:
            RecordNotFoundError: If no record has ``user.id``.
            DuplicateEmailError: If a different record already uses the email.
        """
        async with self._lock:
            email = user.email.casefold()
            if any(other.id != user.id and other.email.casefold() == email for other in self._users):
                raise DuplicateEmailError("Email already exists.", field="email")

            for idx, existing in enumerate(self._users):
                if existing.id == user.id:
                    self._users[idx] = user.model_copy(deep=True)
                    await self._save()
                    return
            raise RecordNotFoundError("User not found.", record_id=user.id)

    async def apply_analysis(
        self,
        user_id: UUID,
        sentiment_score: Optional[float],
        tags: list[str],
        engagement_level: Optional[str],
        analyzed_at: datetime,
    ) -> User:
        """
        Write analysis results onto the record as it is stored now and persist.

        Only the four analysis fields change; edits made to the record while
        the analysis was running are kept.

        Returns:
            A copy of the updated record.

        Raises:
            RecordNotFoundError: If the record was deleted in the meantime.
        """
        async with self._lock:
            for idx, existing in enumerate(self._users):
                if existing.id == user_id:
                    enriched = existing.model_copy(
                        update={
                            "sentiment_score": sentiment_score,
                            "tags": list(tags),
                            "engagement_level": engagement_level,
                            "last_analyzed_at": analyzed_at,
                        },
                        deep=True,
                    )
                    self._users[idx] = enriched
                    await self._save()
                    return enriched.model_copy(deep=True)
            raise RecordNotFoundError("User not found.", record_id=user_id)

    async def delete(self, user_id: UUID) -> None:
        """Remove the record if present and persist; deleting a missing id is a no-op."""
        async with self._lock:
            self._users = [user for user in self._users if user.id != user_id]
            await self._save()
