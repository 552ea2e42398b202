from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol


class UserData(Protocol):
    fiscal_code: str
    first_name: str
    family_name: str
    email: str | None
    work_email: str | None
    phone_number: str | None
    role: str
    created_at: datetime


class UserPort(Protocol):
    async def get_by_fiscal_code(self, fiscal_code: str) -> UserData | None:
        ...

    async def create(
        self,
        *,
        fiscal_code: str,
        first_name: str,
        family_name: str,
        email: str | None,
        phone_number: str | None,
        role: str,
    ) -> UserData:
        ...

    async def update_profile(self, user: UserData, changes: dict[str, Any]) -> UserData:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...
