"""
Authorization boundary

The trustee never authenticates anyone. Callers arrive already
authenticated; the trustee only asks whether an identity is an admin.
"""

from typing import Iterable, Protocol


class Authority(Protocol):
    """Answers admin checks for already-authenticated identities"""

    def is_admin(self, identity: str) -> bool:
        ...


class StaticAuthority:
    """Fixed set of admin identities"""

    def __init__(self, admins: Iterable[str]) -> None:
        self.admins = frozenset(admins)

    def is_admin(self, identity: str) -> bool:
        return identity in self.admins
