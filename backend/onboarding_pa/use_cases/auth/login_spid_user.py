import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ...auth.access_control import Role
from ...domain.ports.session import SessionStore
from ...domain.ports.user import UserData, UserPort
from ...spid.user import SpidLoggedUser, SpidUser, build_logged_user, validate_spid_user
from ...utils.security import create_session_token

logger = logging.getLogger("onboarding_pa.auth")

DEFAULT_ROLE = Role.ORG_DELEGATE


@dataclass(frozen=True)
class LoginResult:
    spid_user: SpidUser
    logged_user: SpidLoggedUser
    user: UserData


async def _get_or_create_user(user_port: UserPort, spid_user: SpidUser) -> UserData:
    try:
        user = await user_port.get_by_fiscal_code(spid_user.fiscal_number)
        if user is not None:
            return user
        user = await user_port.create(
            fiscal_code=spid_user.fiscal_number,
            first_name=spid_user.name,
            family_name=spid_user.family_name,
            email=spid_user.email,
            phone_number=spid_user.mobile_phone,
            role=DEFAULT_ROLE.value,
        )
        await user_port.commit()
    except Exception:
        await user_port.rollback()
        raise
    logger.info("Created user on first SPID login role=%s", DEFAULT_ROLE.value)
    return user


async def login_spid_user(
    raw_assertion: Mapping[str, Any],
    user_port: UserPort,
    session_store: SessionStore,
    *,
    session_ttl_seconds: int,
) -> LoginResult:
    spid_user = validate_spid_user(raw_assertion)
    user = await _get_or_create_user(user_port, spid_user)

    logged_user = build_logged_user(spid_user, create_session_token())
    await session_store.set(
        logged_user.session_token,
        logged_user.to_session_payload(),
        session_ttl_seconds,
    )
    logger.info("SPID login success level=%s", logged_user.spid_level.value)
    return LoginResult(spid_user=spid_user, logged_user=logged_user, user=user)
