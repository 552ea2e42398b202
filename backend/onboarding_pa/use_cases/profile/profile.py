import logging
from typing import Any

from ...auth.access_control import AccessControl, Possession, Resource, Verb
from ...domain.ports.user import UserData, UserPort
from ...errors import NotFoundError, PermissionError
from ...spid.user import SpidLoggedUser

logger = logging.getLogger("onboarding_pa.profile")


def serialize_user(user: UserData) -> dict[str, Any]:
    return {
        "fiscalCode": user.fiscal_code,
        "firstName": user.first_name,
        "familyName": user.family_name,
        "email": user.email,
        "workEmail": user.work_email,
        "phoneNumber": user.phone_number,
        "role": user.role,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


async def _own_user(user_port: UserPort, logged_user: SpidLoggedUser) -> UserData:
    # "own" always means the requester's own record
    user = await user_port.get_by_fiscal_code(logged_user.fiscal_code)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def read_profile(
    user_port: UserPort,
    access_control: AccessControl,
    logged_user: SpidLoggedUser,
) -> dict[str, Any]:
    user = await _own_user(user_port, logged_user)
    permission = access_control.check(user.role, Resource.PROFILE, Verb.READ, Possession.OWN)
    if not permission.granted:
        raise PermissionError(f"Permission denied: {Resource.PROFILE.value} read:own required")
    return permission.filter(serialize_user(user))


async def update_profile(
    user_port: UserPort,
    access_control: AccessControl,
    logged_user: SpidLoggedUser,
    changes: dict[str, Any],
) -> dict[str, Any]:
    user = await _own_user(user_port, logged_user)
    permission = access_control.check(user.role, Resource.PROFILE, Verb.UPDATE, Possession.OWN)
    allowed = set(permission.attributes(changes.keys()))
    forbidden = sorted(name for name in changes if name not in allowed)
    if not permission.granted or forbidden:
        logger.warning(
            "Profile update denied role=%s forbidden=%s", user.role, forbidden
        )
        raise PermissionError(
            f"Permission denied: {Resource.PROFILE.value} update:own",
            details={"forbidden": forbidden},
        )

    if changes:
        try:
            user = await user_port.update_profile(user, changes)
            await user_port.commit()
        except Exception:
            await user_port.rollback()
            raise

    return await read_profile(user_port, access_control, logged_user)
