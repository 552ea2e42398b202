from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic import ValidationError as PydanticValidationError

from ..errors import MissingFiscalNumberError, SpidUserValidationError, ValidationError, error_payload
from ..schemas.strings import FiscalCode, NonEmptyString, SessionToken
from .assertion import get_authn_context_class_ref
from .levels import SpidLevel, resolve_spid_level

logger = logging.getLogger("onboarding_pa.spid")

T = TypeVar("T")

FISCAL_NUMBER_INTERNATIONAL_PREFIX = "TINIT-"


class SpidIssuer(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    text: str = Field(alias="_")


class SpidUser(BaseModel):
    """SPID user extracted from a SAML response."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    authn_context_class_ref: SpidLevel = Field(alias="authnContextClassRef")
    email: EmailStr
    family_name: str = Field(alias="familyName")
    fiscal_number: FiscalCode = Field(alias="fiscalNumber")
    get_assertion_xml: Callable[[], str] = Field(alias="getAssertionXml", exclude=True)
    issuer: SpidIssuer
    mobile_phone: NonEmptyString = Field(alias="mobilePhone")
    name: str
    # optional keys may be absent but never null
    name_id: str = Field(default=None, alias="nameId")
    name_id_format: str = Field(default=None, alias="nameIdFormat")
    session_index: str = Field(default=None, alias="sessionIndex")


class SpidLoggedUser(BaseModel):
    """Principal attached to an authenticated request."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    created_at: int = Field(alias="createdAt")
    family_name: str = Field(alias="familyName")
    fiscal_code: FiscalCode = Field(alias="fiscalCode")
    name: str
    session_token: SessionToken = Field(alias="sessionToken")
    spid_email: EmailStr = Field(alias="spidEmail")
    spid_level: SpidLevel = Field(alias="spidLevel")
    spid_mobile_phone: NonEmptyString = Field(alias="spidMobilePhone")
    name_id: str = Field(default=None, alias="nameId")
    name_id_format: str = Field(default=None, alias="nameIdFormat")
    session_index: str = Field(default=None, alias="sessionIndex")
    spid_idp: str = Field(default=None, alias="spidIdp")

    def to_session_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


def readable_messages(exc: PydanticValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "value"
        messages.append(f"{location}: {error['msg']}")
    return messages


def strip_fiscal_number_prefix(fiscal_number: str) -> str:
    """Remove the international prefix from a fiscal number, if present."""
    if fiscal_number.startswith(FISCAL_NUMBER_INTERNATIONAL_PREFIX):
        return fiscal_number[len(FISCAL_NUMBER_INTERNATIONAL_PREFIX):]
    return fiscal_number


def _assertion_xml(value: Mapping[str, Any]) -> str | None:
    accessor = value.get("getAssertionXml")
    if not callable(accessor):
        return None
    xml = accessor()
    return xml if isinstance(xml, str) else None


def _issuer_name(value: Mapping[str, Any]) -> object:
    issuer = value.get("issuer")
    if isinstance(issuer, Mapping):
        return issuer.get("_")
    return issuer


def validate_spid_user(value: Any) -> SpidUser:
    """Validate a SPID user extracted from a SAML response.

    Raises:
        MissingFiscalNumberError: If the assertion carries no fiscalNumber;
            checked before anything else
        SpidUserValidationError: If the normalized assertion does not match
            the SpidUser contract
    """
    if not isinstance(value, Mapping) or "fiscalNumber" not in value:
        raise MissingFiscalNumberError()

    fiscal_number = value["fiscalNumber"]
    if isinstance(fiscal_number, str):
        fiscal_number = strip_fiscal_number_prefix(fiscal_number)

    # Missing or invalid levels fall back to SPID L2
    authn_context_class_ref = resolve_spid_level(
        get_authn_context_class_ref(_assertion_xml(value)),
        issuer=_issuer_name(value),
    )

    normalized = {
        **value,
        "fiscalNumber": fiscal_number,
        "authnContextClassRef": authn_context_class_ref,
    }

    try:
        return SpidUser.model_validate(normalized)
    except PydanticValidationError as exc:
        violations = readable_messages(exc)
        logger.warning("Invalid SPID user object: %s", " / ".join(violations))
        raise SpidUserValidationError(violations) from None


def build_logged_user(
    spid_user: SpidUser,
    session_token: str,
    *,
    created_at: int | None = None,
) -> SpidLoggedUser:
    optional = {
        name: getattr(spid_user, name)
        for name in ("name_id", "name_id_format", "session_index")
        if name in spid_user.model_fields_set
    }
    return SpidLoggedUser(
        created_at=created_at if created_at is not None else int(time.time() * 1000),
        family_name=spid_user.family_name,
        fiscal_code=spid_user.fiscal_number,
        name=spid_user.name,
        session_token=session_token,
        spid_email=spid_user.email,
        spid_level=spid_user.authn_context_class_ref,
        spid_mobile_phone=spid_user.mobile_phone,
        spid_idp=spid_user.issuer.text,
        **optional,
    )


async def with_user_from_request(
    request: Request,
    f: Callable[[SpidLoggedUser], Awaitable[T]],
) -> JSONResponse | T:
    """Decode the principal attached to ``request`` and pass it to ``f``.

    Handlers must obtain the logged user only through this function. When the
    principal does not match the SpidLoggedUser contract a validation error
    response is returned and ``f`` is never called.
    """
    raw_user = getattr(request.state, "user", None)
    try:
        user = SpidLoggedUser.model_validate(raw_user)
    except PydanticValidationError as exc:
        violations = readable_messages(exc)
        logger.warning(
            "Invalid user attached to request path=%s errors=%s",
            request.url.path,
            " / ".join(violations),
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_payload(
                ValidationError.code,
                "Cannot validate the logged user",
                violations,
            ),
        )
    return await f(user)
