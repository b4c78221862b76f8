"""
User Store Service

Holds the authoritative in-memory collection of user records keyed by
integer id. Provides thread-safe CRUD operations and id generation.
"""

import itertools
import logging
import threading
from typing import Dict, List, Optional

from ..models import User, UserPayload

logger = logging.getLogger(__name__)


class UserStore:
    """
    In-memory storage for user records.

    The store maps integer ids to ``User`` records. Ids come from a counter
    starting at 1; taking the next value and inserting the record happen
    under the same lock, so concurrent adds never share an id.

    Thread-safe using a single lock around every read and write. Records are
    copied on the way in and on the way out, so callers never hold a
    reference to the stored object.

    The store does not check uniqueness of usernames or emails; callers run
    the validator first.

    Example usage:
        store = UserStore()

        # Add a user
        user_id = store.add(UserPayload(username="janeexample",
                                        email="jane.example@contoso.com"))

        # Retrieve a user
        user = store.get_by_id(user_id)
        # Returns: User(id=1, username="janeexample", email="...")

        # List all users
        all_users = store.get_all()

        # Delete a user
        store.delete(user_id)
    """

    def __init__(self):
        self._users: Dict[int, User] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def get_all(self) -> List[User]:
        """
        List all users in the store.

        Returns:
            Snapshot list of user copies in insertion order
        """
        with self._lock:
            return [user.model_copy() for user in self._users.values()]

    def get_by_id(self, user_id: int) -> Optional[User]:
        """
        Retrieve a user by id.

        Returns:
            Copy of the stored user, or None if no user has this id
        """
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user is not None else None

    def add(self, user: UserPayload) -> Optional[int]:
        """
        Insert a new user, ignoring any id the caller supplied.

        Args:
            user: Username and email for the new record

        Returns:
            The assigned id, or None if the id was already taken
        """
        with self._lock:
            new_id = next(self._ids)
            if new_id in self._users:
                logger.error(f"User id collision on {new_id}")
                return None

            self._users[new_id] = User(
                id=new_id,
                username=user.username,
                email=user.email,
            )
            return new_id

    def update(self, user_id: int, user: UserPayload) -> bool:
        """
        Overwrite username and email of an existing user.

        Args:
            user_id: Id of the record to change; the id itself never changes
            user: New username and email

        Returns:
            True if the user was found and updated, False if not found
        """
        with self._lock:
            if user_id not in self._users:
                return False

            self._users[user_id] = User(
                id=user_id,
                username=user.username,
                email=user.email,
            )
            return True

    def delete(self, user_id: int) -> bool:
        """
        Remove user from the store.

        Returns:
            True if user was found and deleted, False if user not found
        """
        with self._lock:
            if user_id in self._users:
                del self._users[user_id]
                return True

            return False

    def count(self) -> int:
        with self._lock:
            return len(self._users)

    def __len__(self) -> int:
        return self.count()
