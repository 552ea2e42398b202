"""
Default grants of the onboarding portal.

Changing this table requires a deploy. Any (role, resource, action) triple not
listed here is denied.
"""
from __future__ import annotations

from typing import Final

from .access_control import (
    ALL_ATTRIBUTES,
    CREATE_OWN,
    DELETE_ANY,
    DELETE_OWN,
    READ_ANY,
    READ_OWN,
    UPDATE_ANY,
    UPDATE_OWN,
    AccessControl,
    Allow,
    Deny,
    GrantsTable,
    Resource,
    Role,
)

EMAIL_ATTRIBUTE: Final[str] = "email"
PASSWORD_ATTRIBUTE: Final[str] = "password"
PHONE_NUMBER_ATTRIBUTE: Final[str] = "phoneNumber"
REGISTRATION_STATUS_ATTRIBUTE: Final[str] = "registrationStatus"
USER_ATTRIBUTE: Final[str] = "user"
WORK_EMAIL_ATTRIBUTE: Final[str] = "workEmail"

# Profile grants shared by managers and admins
_MANAGER_PROFILE_GRANTS = {
    READ_OWN: [
        ALL_ATTRIBUTES,
        Deny(PASSWORD_ATTRIBUTE),
        Deny(WORK_EMAIL_ATTRIBUTE),
    ],
    UPDATE_OWN: [
        Allow(PASSWORD_ATTRIBUTE),
        Deny(WORK_EMAIL_ATTRIBUTE),
        Deny(EMAIL_ATTRIBUTE),
        Deny(PHONE_NUMBER_ATTRIBUTE),
    ],
}

GRANTS: Final = {
    Role.ORG_DELEGATE: {
        Resource.PROFILE: {
            READ_OWN: [ALL_ATTRIBUTES, Deny(PASSWORD_ATTRIBUTE)],
            UPDATE_OWN: [
                Allow(WORK_EMAIL_ATTRIBUTE),
                Deny(EMAIL_ATTRIBUTE),
                Deny(PASSWORD_ATTRIBUTE),
                Deny(PHONE_NUMBER_ATTRIBUTE),
            ],
        },
        Resource.ADMINISTRATION: {
            READ_ANY: [ALL_ATTRIBUTES],
        },
        Resource.ORGANIZATION: {
            CREATE_OWN: [ALL_ATTRIBUTES],
            READ_OWN: [ALL_ATTRIBUTES],
        },
        Resource.UNSIGNED_DOCUMENT: {
            CREATE_OWN: [ALL_ATTRIBUTES],
            READ_OWN: [ALL_ATTRIBUTES],
        },
        Resource.SIGNED_DOCUMENT: {
            CREATE_OWN: [ALL_ATTRIBUTES],
        },
    },
    Role.DEVELOPER: {
        Resource.PROFILE: {
            READ_OWN: [
                ALL_ATTRIBUTES,
                Deny(PASSWORD_ATTRIBUTE),
                Deny(WORK_EMAIL_ATTRIBUTE),
            ],
            UPDATE_OWN: [
                Deny(WORK_EMAIL_ATTRIBUTE),
                Allow(EMAIL_ATTRIBUTE),
                Allow(PASSWORD_ATTRIBUTE),
                Allow(PHONE_NUMBER_ATTRIBUTE),
            ],
        },
        Resource.ADMINISTRATION: {
            READ_ANY: [ALL_ATTRIBUTES],
        },
    },
    Role.ORG_MANAGER: {
        Resource.PROFILE: _MANAGER_PROFILE_GRANTS,
        Resource.ORGANIZATION: {
            READ_OWN: [ALL_ATTRIBUTES],
            DELETE_OWN: [ALL_ATTRIBUTES, Allow(USER_ATTRIBUTE)],
        },
    },
    Role.ADMIN: {
        Resource.PROFILE: _MANAGER_PROFILE_GRANTS,
        Resource.ORGANIZATION: {
            READ_ANY: [ALL_ATTRIBUTES],
            UPDATE_ANY: [Allow(REGISTRATION_STATUS_ATTRIBUTE)],
            DELETE_ANY: [ALL_ATTRIBUTES],
        },
        Resource.SIGNED_DOCUMENT: {
            READ_ANY: [ALL_ATTRIBUTES],
        },
    },
}


def build_access_control() -> AccessControl:
    """Build the access control object once, at application startup."""
    return AccessControl(GrantsTable.from_nested(GRANTS))
