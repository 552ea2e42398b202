from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User

# API attribute name -> model column
PROFILE_COLUMNS: dict[str, str] = {
    "email": "email",
    "workEmail": "work_email",
    "phoneNumber": "phone_number",
}


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_fiscal_code(self, fiscal_code: str) -> User | None:
        result = await self.session.execute(
            select(User).where(
                User.fiscal_code == fiscal_code,
                User.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        *,
        fiscal_code: str,
        first_name: str,
        family_name: str,
        email: str | None,
        phone_number: str | None,
        role: str,
    ) -> User:
        user = User(
            fiscal_code=fiscal_code,
            first_name=first_name,
            family_name=family_name,
            email=email,
            phone_number=phone_number,
            role=role,
        )
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update_profile(self, user: User, changes: dict[str, Any]) -> User:
        for attribute, value in changes.items():
            column = PROFILE_COLUMNS.get(attribute)
            if column is None:
                raise ValueError(f"Unknown profile attribute '{attribute}'")
            setattr(user, column, value)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
