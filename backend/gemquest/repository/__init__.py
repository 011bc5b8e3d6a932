# gemquest/repository/__init__.py
"""
Principal repository.

The authorization core never talks to the ORM directly: every component
receives a PrincipalRepository at construction time.
- base: abstract interface and the TokenKind enum
- tortoise_repo: Tortoise ORM implementation used by the application
"""
from .base import PrincipalRepository, TokenKind
from .tortoise_repo import TortoisePrincipalRepository

__all__ = [
    "PrincipalRepository",
    "TokenKind",
    "TortoisePrincipalRepository",
]
