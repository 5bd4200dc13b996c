"""Role capability checks consumed by the scheduler and lifecycle."""

from __future__ import annotations

from typing import AbstractSet, Protocol

from campus_booking.domain.errors import UnauthorizedError
from campus_booking.domain.models import Actor, Role


BOOKING_VIEWERS = frozenset({Role.STUDENT, Role.CLASS_REPRESENTATIVE, Role.ADMIN})
BOOKING_SUBMITTERS = frozenset({Role.CLASS_REPRESENTATIVE, Role.ADMIN})
BOOKING_ADMINS = frozenset({Role.ADMIN})


class RoleGate(Protocol):
    def has_any_role(self, actor: Actor, roles: AbstractSet[Role]) -> bool:
        ...


class ActorRoleGate:
    """Grants access based on the role carried by the authenticated actor."""

    def has_any_role(self, actor: Actor, roles: AbstractSet[Role]) -> bool:
        return actor is not None and actor.role in roles


def require_any_role(
    gate: RoleGate,
    actor: Actor,
    roles: AbstractSet[Role],
    action: str,
) -> None:
    if not gate.has_any_role(actor, roles):
        allowed = ", ".join(sorted(role.value for role in roles))
        raise UnauthorizedError(f"{action} requires one of: {allowed}")
