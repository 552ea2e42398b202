from .base import Base
from .organization import Organization
from .organization_user import OrganizationUser
from .user import User

__all__ = [
    "Base",
    "User",
    "Organization",
    "OrganizationUser",
]
