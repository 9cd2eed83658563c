"""Core data models for the user records MCP server."""

from dataclasses import dataclass, asdict
from typing import Any, Dict


@dataclass
class UserProfile:
    """User data supplied by a caller, before an id is assigned."""

    name: str
    email: str
    address: str
    phone: str

    def with_id(self, user_id: int) -> "User":
        """Attach an identifier to this profile.

        Args:
            user_id: Identifier assigned by the store

        Returns:
            Complete user record
        """
        return User(
            id=user_id,
            name=self.name,
            email=self.email,
            address=self.address,
            phone=self.phone,
        )

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass
class User:
    """A stored user record."""

    id: int
    name: str
    email: str
    address: str
    phone: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON object written to the users file."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        """Build a record from a JSON object read from the users file.

        Keys other than the record fields are ignored.

        Args:
            data: Decoded JSON object

        Returns:
            User record

        Raises:
            KeyError: If a record field is missing
        """
        return cls(
            id=data["id"],
            name=data["name"],
            email=data["email"],
            address=data["address"],
            phone=data["phone"],
        )

    def __str__(self) -> str:
        return f"User {self.id}: {self.name} <{self.email}>"
