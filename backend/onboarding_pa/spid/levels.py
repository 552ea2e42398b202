from __future__ import annotations

import logging
from enum import Enum
from typing import Final

logger = logging.getLogger("onboarding_pa.spid")


class SpidLevel(str, Enum):
    L1 = "https://www.spid.gov.it/SpidL1"
    L2 = "https://www.spid.gov.it/SpidL2"
    L3 = "https://www.spid.gov.it/SpidL3"


DEFAULT_SPID_LEVEL: Final = SpidLevel.L2

SPID_LEVELS: Final[frozenset[str]] = frozenset(level.value for level in SpidLevel)


def is_spid_level(value: object) -> bool:
    return isinstance(value, str) and value in SPID_LEVELS


def resolve_spid_level(found: str | None, issuer: object = None) -> SpidLevel:
    """Return the level asserted by the IdP, or the default one.

    A level that is present but not recognized is logged as a warning to
    audit IdP responses; it never fails the login. The SPID test IdP is known
    to send invalid values (https://github.com/italia/spid-testenv/issues/26).
    """
    if found is not None and is_spid_level(found):
        level = SpidLevel(found)
    else:
        if found is not None:
            logger.warning(
                "Response from IDP: %s doesn't contain a valid SPID level: %s",
                issuer,
                found,
            )
        level = DEFAULT_SPID_LEVEL

    logger.info("Response from IDP (authnContextClassRef): %s", level.value)
    return level
