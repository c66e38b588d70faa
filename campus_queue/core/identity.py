"""Caller identities.

Every request is made by exactly one of an admin, a staff member (after
unique-code access) or an anonymous student. Each variant carries only the
fields its role needs; ``kind`` is the discriminator.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Literal, Union


@dataclass(frozen=True)
class AdminIdentity:
    user_id: uuid.UUID
    email: str
    name: str
    kind: Literal["admin"] = "admin"


@dataclass(frozen=True)
class StaffIdentity:
    staff_id: uuid.UUID
    name: str
    department: str
    kind: Literal["staff"] = "staff"


@dataclass(frozen=True)
class AnonymousIdentity:
    kind: Literal["anonymous"] = "anonymous"


Identity = Union[AdminIdentity, StaffIdentity, AnonymousIdentity]

ANONYMOUS = AnonymousIdentity()
