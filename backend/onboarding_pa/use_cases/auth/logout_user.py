import logging

from ...domain.ports.session import SessionStore

logger = logging.getLogger("onboarding_pa.auth")


async def logout_user(session_store: SessionStore, session_token: str) -> bool:
    deleted = await session_store.delete(session_token)
    if not deleted:
        logger.info("Logout for an unknown or expired session")
    return deleted
