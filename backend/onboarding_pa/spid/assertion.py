from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

logger = logging.getLogger("onboarding_pa.spid")

AUTHN_CONTEXT_CLASS_REF_TAG = "AuthnContextClassRef"


def _local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1].rsplit(":", 1)[-1]


def get_authn_context_class_ref(xml: str | None) -> str | None:
    """Extract the AuthnContextClassRef from a SAML assertion.

    ie. for <saml:AuthnContextClassRef>https://www.spid.gov.it/SpidL2</saml:AuthnContextClassRef>
    returns "https://www.spid.gov.it/SpidL2"

    Returns None when the XML is empty, unparsable or has no such element.
    """
    if not isinstance(xml, str) or not xml.strip():
        return None
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as exc:
        logger.debug("Cannot parse SAML assertion XML: %s", exc)
        return None

    for element in root.iter():
        if _local_name(element.tag) == AUTHN_CONTEXT_CLASS_REF_TAG:
            text = (element.text or "").strip()
            return text or None
    return None
