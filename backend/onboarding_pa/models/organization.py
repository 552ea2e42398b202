from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Organization(Base):
    __tablename__ = "organizations"

    ipa_code: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    fiscal_code: Mapped[str | None] = mapped_column(String(16))
    pec: Mapped[str | None] = mapped_column(String(255))
    scope: Mapped[str | None] = mapped_column(String(50))
    registration_status: Mapped[str] = mapped_column(
        String(50), nullable=False, server_default="PRE_REGISTERED"
    )
    # user who registered the organization
    user_fiscal_code: Mapped[str | None] = mapped_column(
        String(16),
        ForeignKey("users.fiscal_code", ondelete="SET NULL"),
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
