from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class OrganizationUser(Base):
    __tablename__ = "organization_users"

    organization_ipa_code: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("organizations.ipa_code", ondelete="CASCADE"),
        primary_key=True,
    )
    user_fiscal_code: Mapped[str] = mapped_column(
        String(16),
        ForeignKey("users.fiscal_code", ondelete="CASCADE"),
        primary_key=True,
    )
    user_role: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "organization_ipa_code", "user_fiscal_code", name="uq_organization_user"
        ),
    )
