from .assertion import get_authn_context_class_ref
from .levels import DEFAULT_SPID_LEVEL, SpidLevel, is_spid_level, resolve_spid_level
from .strategy import SpidStrategy
from .user import (
    SpidLoggedUser,
    SpidUser,
    build_logged_user,
    strip_fiscal_number_prefix,
    validate_spid_user,
    with_user_from_request,
)

__all__ = [
    "DEFAULT_SPID_LEVEL",
    "SpidLevel",
    "SpidLoggedUser",
    "SpidStrategy",
    "SpidUser",
    "build_logged_user",
    "get_authn_context_class_ref",
    "is_spid_level",
    "resolve_spid_level",
    "strip_fiscal_number_prefix",
    "validate_spid_user",
    "with_user_from_request",
]
