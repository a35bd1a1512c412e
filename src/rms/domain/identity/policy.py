from __future__ import annotations

from rms.domain.identity.entities import MANAGEMENT_ROLES, Role, User


class UserPolicyError(Exception):
    pass


def ensure_can_assign_role(actor_role: Role, target_role: Role) -> None:
    if actor_role == Role.ADMIN:
        return
    if actor_role == Role.MANAGER and target_role not in MANAGEMENT_ROLES:
        return
    raise UserPolicyError(f"role {actor_role.value} cannot manage {target_role.value} accounts")


def ensure_can_manage(actor: User, target: User) -> None:
    ensure_can_assign_role(actor.role, target.role)


def ensure_not_self(actor: User, target: User, action: str) -> None:
    if actor.user_id == target.user_id:
        raise UserPolicyError(f"you cannot {action} your own account")
