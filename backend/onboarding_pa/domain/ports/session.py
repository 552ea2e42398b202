from __future__ import annotations

from typing import Any, Protocol


class SessionStore(Protocol):
    async def get(self, token: str) -> dict[str, Any] | None:
        ...

    async def set(self, token: str, payload: dict[str, Any], ttl_seconds: int) -> None:
        ...

    async def delete(self, token: str) -> bool:
        ...
