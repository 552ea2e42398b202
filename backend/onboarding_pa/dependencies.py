import logging
from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .auth.access_control import AccessControl
from .crud.user import UserRepository
from .database import get_session
from .domain.ports.session import SessionStore
from .domain.ports.user import UserPort
from .spid.strategy import SpidStrategy

logger = logging.getLogger("onboarding_pa.auth")

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


def get_user_port(db: AsyncSession = Depends(get_db)) -> UserPort:
    return UserRepository(db)


def get_access_control(request: Request) -> AccessControl:
    return request.app.state.access_control


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_spid_strategy(request: Request) -> SpidStrategy:
    strategy = getattr(request.app.state, "spid_strategy", None)
    if strategy is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="SPID login is not configured",
        )
    return strategy


def get_session_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )
    return credentials.credentials


async def load_session_principal(
    request: Request,
    token: str = Depends(get_session_token),
    session_store: SessionStore = Depends(get_session_store),
) -> None:
    """Attach the stored session payload to ``request.state.user``.

    The payload is not decoded here: handlers go through
    ``with_user_from_request`` to obtain a trusted principal.
    """
    payload = await session_store.get(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Session not found"
        )
    request.state.user = payload
