"""Account roles and the role policy.

Roles form a closed set checked as data; there is no role hierarchy.
"""

from collections.abc import Iterable
from enum import Enum


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


def parse_role(value: object) -> Role | None:
    """Return the Role for a raw value, or None if it is not a known role."""
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).upper())
    except ValueError:
        return None


def is_permitted(role: Role | str | None, allowed: Iterable[Role]) -> bool:
    """Pure allow-list check of a role against permitted roles."""
    resolved = parse_role(role) if role is not None else None
    return resolved is not None and resolved in set(allowed)
