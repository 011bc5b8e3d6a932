"""
Principal Repository Abstract Interface

Storage for users, roles, groups and their (optionally client-scoped)
assignments. Uniqueness violations surface as ConflictError.
"""
import datetime as dt
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, AsyncContextManager, Iterable, List, Optional, Tuple

from gemquest.models import Client, Group, GroupRole, Role, User, UserGroup, UserRole


class TokenKind(str, Enum):
    """The two independent single-use tokens embedded in a user."""
    CONFIRMATION = "confirmation"
    RESET = "reset"

    @property
    def token_field(self) -> str:
        return f"{self.value}_token"

    @property
    def expiry_field(self) -> str:
        return f"{self.value}_token_expiry"


class PrincipalRepository(ABC):
    """Principal Repository Abstract Base Class"""

    @abstractmethod
    def transaction(self) -> AsyncContextManager[Any]:
        """
        Async context manager grouping the calls made inside it into one
        atomic unit: all of them commit, or none do.
        """
        pass

    # -------- users --------
    @abstractmethod
    async def find_user_by_id(self, user_id: Any) -> Optional[User]:
        pass

    @abstractmethod
    async def find_user_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def find_user_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    async def find_user_by_token(self, kind: TokenKind, value: str, now: dt.datetime) -> Optional[User]:
        """
        Find the user whose `kind` token equals `value` AND whose expiry is
        strictly after `now`, in one query.
        """
        pass

    @abstractmethod
    async def create_user(self, **fields: Any) -> User:
        """
        Raises:
            ConflictError: duplicate email or username
        """
        pass

    @abstractmethod
    async def update_user(self, user_id: Any, **fields: Any) -> None:
        """Partial update of the given fields."""
        pass

    @abstractmethod
    async def clear_token(
        self, kind: TokenKind, user_id: Any, value: str, now: dt.datetime, **changes: Any
    ) -> bool:
        """
        Compare-and-clear: in a single write, null the `kind` token and expiry
        and apply `changes`, only if the stored token still equals `value`
        and has not expired at `now`.

        Returns:
            True if the row was updated, False if the token no longer matched
        """
        pass

    # -------- roles --------
    @abstractmethod
    async def find_role_by_name(self, name: str) -> Optional[Role]:
        pass

    @abstractmethod
    async def ensure_role(self, name: str, description: Optional[str] = None) -> Role:
        """Return the role called `name`, creating it if missing."""
        pass

    @abstractmethod
    async def assign_role(self, user_id: Any, role_id: int, client_id: Optional[int]) -> Tuple[UserRole, bool]:
        """
        Idempotently assign a role. Returns (assignment, created); assigning an
        existing (user, role, client) triple returns it with created=False.
        """
        pass

    @abstractmethod
    async def client_role_names(self, user_id: Any, client_id: int) -> List[str]:
        """Role names assigned directly to the user in exactly this client (no globals)."""
        pass

    @abstractmethod
    async def list_direct_role_names(self, user_id: Any, client_id: Optional[int]) -> List[str]:
        """
        Role names of direct assignments where client = client_id OR client IS NULL.
        client_id=None restricts to global assignments.
        """
        pass

    # -------- groups --------
    @abstractmethod
    async def list_group_ids(self, user_id: Any) -> List[int]:
        pass

    @abstractmethod
    async def list_group_role_names(self, group_ids: Iterable[int], client_id: Optional[int]) -> List[str]:
        """Role names granted to any of `group_ids`, same scope predicate as direct assignments."""
        pass

    @abstractmethod
    async def create_group(self, name: str, description: Optional[str] = None) -> Group:
        pass

    @abstractmethod
    async def find_group_by_id(self, group_id: int) -> Optional[Group]:
        pass

    @abstractmethod
    async def add_user_to_group(self, user_id: Any, group_id: int) -> Tuple[UserGroup, bool]:
        pass

    @abstractmethod
    async def assign_group_role(self, group_id: int, role_id: int, client_id: Optional[int]) -> Tuple[GroupRole, bool]:
        pass

    # -------- clients --------
    @abstractmethod
    async def find_client_by_id(self, client_id: int, lock: bool = False) -> Optional[Client]:
        """
        lock=True also takes a row lock on the client until the surrounding
        transaction ends, serializing writes scoped to that client.
        """
        pass
