"""User repository for database operations."""

from typing import Optional
from .base import BaseRepository
from ..database_models.lab import UserDO


class UserRepository(BaseRepository):
    """Repository for user lookups."""

    def create(self, user: UserDO) -> int:
        """Insert a user row and return its id."""
        try:
            new_id = self._fetch_scalar(
                "INSERT INTO users (name, email, role) VALUES (?, ?, ?) RETURNING id",
                [user.name, user.email, user.role]
            )
            self.conn.commit()
            self.logger.info(f"Created user record: {new_id}")
            return new_id
        except Exception as e:
            self.logger.error(f"Failed to create user {user.name}: {e}")
            raise

    def get(self, user_id: int) -> Optional[UserDO]:
        """
        Get user by ID.

        Args:
            user_id: User ID

        Returns:
            UserDO instance or None when no such user exists

        Raises:
            Exception: The query failed
        """
        try:
            rows = self._fetch_dicts(
                "SELECT id, name, role, email, created_at FROM users WHERE id = ?", [user_id]
            )
            return UserDO(**rows[0]) if rows else None
        except Exception as e:
            self.logger.error(f"Failed to get user {user_id}: {e}")
            raise
