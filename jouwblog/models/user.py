"""
User model for the JouwBlog backend.
"""

import re
from typing import Optional, Dict, Any

from .common import new_id, now_millis, parse_counter, is_text

USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9_.-]{3,32}$')


class User:
    """User data model."""

    def __init__(
        self,
        user_id: Optional[str] = None,
        username: str = "",
        name: str = "",
        email: str = "",
        created_at: Optional[int] = None
    ):
        self.user_id = user_id or new_id()
        self.username = username
        self.name = name
        self.email = email
        self.created_at = created_at if created_at is not None else now_millis()

    def to_dict(self) -> Dict[str, Any]:
        """Convert user to dictionary for MongoDB storage and JSON output."""
        return {
            "user_id": self.user_id,
            "username": self.username,
            "name": self.name,
            "email": self.email,
            "created_at": self.created_at
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'User':
        """Create User object from dictionary."""
        return User(
            user_id=data.get('user_id'),
            username=data.get('username', ''),
            name=data.get('name', ''),
            email=data.get('email', ''),
            created_at=data.get('created_at')
        )

    def to_hash(self) -> Dict[str, str]:
        """Flatten user into a Redis hash (string values only)."""
        return {
            "user_id": self.user_id,
            "username": self.username,
            "name": self.name,
            "email": self.email,
            "created_at": str(self.created_at)
        }

    @staticmethod
    def from_hash(data: Dict[str, str]) -> 'User':
        if not data.get('user_id'):
            raise ValueError("User hash has no user_id")
        return User(
            user_id=data['user_id'],
            username=data.get('username', ''),
            name=data.get('name', ''),
            email=data.get('email', ''),
            created_at=parse_counter(data.get('created_at'), 'created_at')
        )

    def validate(self) -> tuple[bool, Optional[str]]:
        """
        Validate user data.
        Returns (is_valid, error_message).
        """
        if not isinstance(self.username, str) or not USERNAME_PATTERN.match(self.username):
            return False, "Username must be 3-32 characters of letters, digits, '_', '.' or '-'"

        if not is_text(self.name):
            return False, "Name is required"

        if not isinstance(self.email, str) or '@' not in self.email:
            return False, "Valid email is required"

        return True, None

    def __eq__(self, other):
        if not isinstance(other, User):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"User(user_id={self.user_id!r}, username={self.username!r})"
