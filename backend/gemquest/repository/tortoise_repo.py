"""
Tortoise ORM implementation of the principal repository.

Assignment triples contain a nullable client, and SQL unique indexes treat
NULLs as distinct, so idempotent creation is done here: look up first, insert,
and on IntegrityError (a concurrent insert won the race) read the row back.
"""
import datetime as dt
import logging
from typing import Any, Iterable, List, Optional, Tuple, Type

from tortoise.exceptions import IntegrityError
from tortoise.expressions import Q
from tortoise.models import Model
from tortoise.transactions import in_transaction

from gemquest.core.errors import ConflictError
from gemquest.models import Client, Group, GroupRole, Role, User, UserGroup, UserRole
from .base import PrincipalRepository, TokenKind

logger = logging.getLogger("uvicorn.error")


def _scope_q(client_id: Optional[int]) -> Q:
    """client = client_id OR client IS NULL; global-only when client_id is None."""
    if client_id is None:
        return Q(client_id__isnull=True)
    return Q(client_id=client_id) | Q(client_id__isnull=True)


def _exact_client(client_id: Optional[int]) -> dict:
    """Lookup kwargs matching exactly one scope (NULL needs IS NULL, not = NULL)."""
    if client_id is None:
        return {"client_id__isnull": True}
    return {"client_id": client_id}


async def _get_or_create(model: Type[Model], lookup: dict, values: dict) -> Tuple[Any, bool]:
    existing = await model.filter(**lookup).first()
    if existing:
        return existing, False
    try:
        return await model.create(**values), True
    except IntegrityError as exc:
        existing = await model.filter(**lookup).first()
        if existing is None:
            raise ConflictError(f"{model.__name__} could not be created: {exc}") from exc
        return existing, False


class TortoisePrincipalRepository(PrincipalRepository):
    """Principal repository backed by the Tortoise models in gemquest.models."""

    def transaction(self):
        return in_transaction()

    # -------- users --------
    async def find_user_by_id(self, user_id: Any) -> Optional[User]:
        return await User.get_or_none(id=user_id)

    async def find_user_by_email(self, email: str) -> Optional[User]:
        return await User.get_or_none(email=email)

    async def find_user_by_username(self, username: str) -> Optional[User]:
        return await User.get_or_none(username=username)

    async def find_user_by_token(self, kind: TokenKind, value: str, now: dt.datetime) -> Optional[User]:
        return await User.filter(
            **{kind.token_field: value, f"{kind.expiry_field}__gt": now}
        ).first()

    async def create_user(self, **fields: Any) -> User:
        try:
            return await User.create(**fields)
        except IntegrityError as exc:
            raise ConflictError("User already exists", code="USER_EXISTS") from exc

    async def update_user(self, user_id: Any, **fields: Any) -> None:
        try:
            await User.filter(id=user_id).update(**fields)
        except IntegrityError as exc:
            raise ConflictError("User already exists", code="USER_EXISTS") from exc

    async def clear_token(
        self, kind: TokenKind, user_id: Any, value: str, now: dt.datetime, **changes: Any
    ) -> bool:
        updated = await User.filter(
            **{"id": user_id, kind.token_field: value, f"{kind.expiry_field}__gt": now}
        ).update(**{kind.token_field: None, kind.expiry_field: None}, **changes)
        return updated == 1

    # -------- roles --------
    async def find_role_by_name(self, name: str) -> Optional[Role]:
        return await Role.get_or_none(name=name)

    async def ensure_role(self, name: str, description: Optional[str] = None) -> Role:
        role, created = await _get_or_create(
            Role, {"name": name}, {"name": name, "description": description}
        )
        if created:
            logger.info("[rbac] seeded role %r", name)
        return role

    async def assign_role(self, user_id: Any, role_id: int, client_id: Optional[int]) -> Tuple[UserRole, bool]:
        lookup = {"user_id": user_id, "role_id": role_id, **_exact_client(client_id)}
        return await _get_or_create(
            UserRole, lookup, {"user_id": user_id, "role_id": role_id, "client_id": client_id}
        )

    async def client_role_names(self, user_id: Any, client_id: int) -> List[str]:
        return await UserRole.filter(user_id=user_id, client_id=client_id).values_list(
            "role__name", flat=True
        )

    async def list_direct_role_names(self, user_id: Any, client_id: Optional[int]) -> List[str]:
        return await UserRole.filter(_scope_q(client_id), user_id=user_id).values_list(
            "role__name", flat=True
        )

    # -------- groups --------
    async def list_group_ids(self, user_id: Any) -> List[int]:
        return await UserGroup.filter(user_id=user_id).values_list("group_id", flat=True)

    async def list_group_role_names(self, group_ids: Iterable[int], client_id: Optional[int]) -> List[str]:
        group_ids = list(group_ids)
        if not group_ids:
            return []
        return await GroupRole.filter(_scope_q(client_id), group_id__in=group_ids).values_list(
            "role__name", flat=True
        )

    async def create_group(self, name: str, description: Optional[str] = None) -> Group:
        try:
            return await Group.create(name=name, description=description)
        except IntegrityError as exc:
            raise ConflictError("Group already exists", code="GROUP_EXISTS") from exc

    async def find_group_by_id(self, group_id: int) -> Optional[Group]:
        return await Group.get_or_none(id=group_id)

    async def add_user_to_group(self, user_id: Any, group_id: int) -> Tuple[UserGroup, bool]:
        lookup = {"user_id": user_id, "group_id": group_id}
        return await _get_or_create(UserGroup, lookup, dict(lookup))

    async def assign_group_role(self, group_id: int, role_id: int, client_id: Optional[int]) -> Tuple[GroupRole, bool]:
        lookup = {"group_id": group_id, "role_id": role_id, **_exact_client(client_id)}
        return await _get_or_create(
            GroupRole, lookup, {"group_id": group_id, "role_id": role_id, "client_id": client_id}
        )

    # -------- clients --------
    async def find_client_by_id(self, client_id: int, lock: bool = False) -> Optional[Client]:
        query = Client.filter(id=client_id)
        if lock:
            # Ignored on SQLite, which serializes write transactions anyway
            query = query.select_for_update()
        return await query.first()
