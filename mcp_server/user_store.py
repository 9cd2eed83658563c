"""
User record stores.

Records live in a single JSON array. Ids are a sequential counter: a new
record gets ``len(records) + 1``. Every mutation re-reads and rewrites the
whole store; nothing serializes concurrent appends, so two appends whose reads
overlap get the same id and the last write wins.
"""
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Union

import anyio

from models.data_models import User, UserProfile

logger = logging.getLogger(__name__)


class UserStore(ABC):
    """Interface shared by the file-backed and in-memory stores."""

    @abstractmethod
    async def list(self) -> List[User]:
        """Return every stored record in insertion order."""

    @abstractmethod
    async def append(self, candidate: UserProfile) -> int:
        """Store a new record and return its id."""

    async def get(self, user_id: int) -> Optional[User]:
        """
        Look up a record by id.

        Args:
            user_id: Record identifier

        Returns:
            The record, or None if no record has that id
        """
        for user in await self.list():
            if user.id == user_id:
                return user
        return None


class JsonFileUserStore(UserStore):
    """
    Store backed by a pretty-printed JSON file.

    - A missing or unreadable file reads as an empty store
    - Malformed JSON is not recovered; the decode error propagates
    - The file and its directory are created on first append
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def list(self) -> List[User]:
        try:
            data = await anyio.Path(self.path).read_text(encoding="utf-8")
        except OSError as e:
            logger.debug(f"Users file {self.path} not readable ({e}), starting empty")
            return []

        return [User.from_dict(item) for item in json.loads(data)]

    async def append(self, candidate: UserProfile) -> int:
        try:
            await anyio.Path(self.path.parent).mkdir(parents=True, exist_ok=True)

            users = await self.list()
            user_id = len(users) + 1
            users.append(candidate.with_id(user_id))

            payload = json.dumps([user.to_dict() for user in users], indent=2)
            await anyio.Path(self.path).write_text(payload, encoding="utf-8")
        except Exception as e:
            logger.error(f"Error creating user: {e}")
            raise

        logger.info(f"Saved user {user_id} to {self.path}")
        return user_id


class InMemoryUserStore(UserStore):
    """Store kept in a Python list, for tests and throwaway servers."""

    def __init__(self, users: Optional[List[User]] = None):
        self._users: List[User] = list(users or [])

    async def list(self) -> List[User]:
        return [User(**user.to_dict()) for user in self._users]

    async def append(self, candidate: UserProfile) -> int:
        user_id = len(self._users) + 1
        self._users.append(candidate.with_id(user_id))
        return user_id
