from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from fastapi import Request


class SpidStrategy(Protocol):
    """SAML service provider talking to the SPID identity providers.

    Signature verification, IdP metadata handling and SP metadata generation
    live behind this interface.
    """

    async def login_url(self, request: Request) -> str:
        """URL of the IdP login page the user is redirected to."""
        ...

    async def authenticate(self, request: Request) -> Mapping[str, Any] | None:
        """Process the SAML response posted to the assertion consumer service.

        Returns the decoded assertion (fiscalNumber, email, mobilePhone, name,
        familyName, issuer, getAssertionXml, ...) or None when no user was
        authenticated.
        """
        ...
