import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse

from ..config import settings
from ..dependencies import (
    get_session_store,
    get_session_token,
    get_spid_strategy,
    get_user_port,
)
from ..errors import AuthError
from ..schemas.auth import SpidLoginResponse
from ..use_cases.auth.login_spid_user import login_spid_user
from ..use_cases.auth.logout_user import logout_user

logger = logging.getLogger("onboarding_pa.auth")

router = APIRouter(tags=["auth"])


@router.get("/login")
async def login(
    request: Request,
    strategy=Depends(get_spid_strategy),
) -> RedirectResponse:
    return RedirectResponse(
        await strategy.login_url(request), status_code=status.HTTP_302_FOUND
    )


@router.post("/assertion-consumer-service", response_model=SpidLoginResponse)
async def assertion_consumer_service(
    request: Request,
    strategy=Depends(get_spid_strategy),
    user_port=Depends(get_user_port),
    session_store=Depends(get_session_store),
) -> SpidLoginResponse:
    raw_assertion = await strategy.authenticate(request)
    if not raw_assertion:
        logger.error("Error in SPID authentication: no user found")
        raise AuthError("Error in SPID authentication: no user found")

    result = await login_spid_user(
        raw_assertion,
        user_port,
        session_store,
        session_ttl_seconds=settings.session_ttl_seconds,
    )
    spid_user = result.spid_user
    return SpidLoginResponse(
        session_token=result.logged_user.session_token,
        email=spid_user.email,
        family_name=spid_user.family_name,
        fiscal_number=spid_user.fiscal_number,
        mobile_phone=spid_user.mobile_phone,
        name=spid_user.name,
        spid_level=result.logged_user.spid_level.value,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: str = Depends(get_session_token),
    session_store=Depends(get_session_store),
) -> None:
    await logout_user(session_store, token)
