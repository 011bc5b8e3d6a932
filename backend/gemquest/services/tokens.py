"""
Token Lifecycle Manager

Issues, validates and consumes the single-use, time-boxed tokens embedded in
a user (email confirmation, password reset).

Per token kind the states are:
    Absent -> Active (token set, now < expiry) -> Expired (now >= expiry)
    Active -> Absent on successful consumption
Issuing always overwrites whatever token of that kind was there before.
"""
import datetime as dt
from typing import Any, Callable, Dict, Tuple

from gemquest.core.errors import InvalidOrExpiredToken
from gemquest.core.security import expiry_from_now, generate_token, utc_now
from gemquest.models import User
from gemquest.repository import PrincipalRepository, TokenKind


class TokenManager:
    def __init__(self, repo: PrincipalRepository, clock: Callable[[], dt.datetime] = utc_now):
        self.repo = repo
        self.clock = clock

    def mint(self, kind: TokenKind, hours: int) -> Tuple[str, Dict[str, Any]]:
        """
        New token plus the user fields that store it, for callers that write
        the token together with other fields (e.g. user creation).
        """
        token = generate_token()
        expiry = expiry_from_now(hours, now=self.clock())
        return token, {kind.token_field: token, kind.expiry_field: expiry}

    async def issue(self, user: User, kind: TokenKind, hours: int) -> str:
        """
        Generate a new token of `kind` for `user`, valid for `hours`, and persist it.
        Any previously issued token of the same kind stops working.
        """
        token, fields = self.mint(kind, hours)
        await self.repo.update_user(user.id, **fields)
        for field, value in fields.items():
            setattr(user, field, value)
        return token

    async def validate(self, kind: TokenKind, token: str) -> User:
        """
        Return the user holding `token`, looked up with equality and freshness
        combined in one query.

        Raises:
            InvalidOrExpiredToken: absent, mismatched and expired tokens alike
        """
        if not token:
            raise InvalidOrExpiredToken()
        user = await self.repo.find_user_by_token(kind, token, self.clock())
        if user is None:
            raise InvalidOrExpiredToken()
        return user

    async def consume(self, kind: TokenKind, user: User, token: str, **changes: Any) -> None:
        """
        Clear the token and apply `changes` (the state change the token
        authorizes) in one conditional write. If another request consumed or
        replaced the token in between, nothing is written.

        Raises:
            InvalidOrExpiredToken: the token no longer matches or has expired
        """
        applied = await self.repo.clear_token(kind, user.id, token, self.clock(), **changes)
        if not applied:
            raise InvalidOrExpiredToken()
        setattr(user, kind.token_field, None)
        setattr(user, kind.expiry_field, None)
        for field, value in changes.items():
            setattr(user, field, value)
