import logging

import pytest

from onboarding_pa.errors import MissingFiscalNumberError, SpidUserValidationError
from onboarding_pa.spid import (
    DEFAULT_SPID_LEVEL,
    SpidLevel,
    build_logged_user,
    get_authn_context_class_ref,
    resolve_spid_level,
    strip_fiscal_number_prefix,
    validate_spid_user,
)

from spid_helpers import FISCAL_CODE, SPID_L1, SPID_L2, SPID_L3, assertion_xml, raw_assertion


class TestFiscalNumberPrefix:
    def test_strips_international_prefix(self):
        assert strip_fiscal_number_prefix("TINIT-ABC123") == "ABC123"

    def test_leaves_unprefixed_value_unchanged(self):
        assert strip_fiscal_number_prefix("ABC123") == "ABC123"

    def test_only_leading_prefix_is_removed(self):
        assert strip_fiscal_number_prefix("ABC-TINIT-123") == "ABC-TINIT-123"


class TestAuthnContextExtraction:
    @pytest.mark.parametrize("level", [SPID_L1, SPID_L2, SPID_L3])
    def test_reads_trimmed_level(self, level):
        assert get_authn_context_class_ref(assertion_xml(level)) == level

    def test_missing_element(self):
        assert get_authn_context_class_ref(assertion_xml(None)) is None

    @pytest.mark.parametrize("xml", [None, "", "   ", "<not-closed>", "plain text", "<a:b>unbound</a:b>"])
    def test_unusable_xml_yields_nothing(self, xml):
        assert get_authn_context_class_ref(xml) is None

    def test_first_element_wins(self):
        xml = (
            '<r xmlns:saml="urn:oasis:names:tc:SAML:2.0:assertion">'
            f"<saml:AuthnContextClassRef>{SPID_L3}</saml:AuthnContextClassRef>"
            f"<saml:AuthnContextClassRef>{SPID_L1}</saml:AuthnContextClassRef>"
            "</r>"
        )
        assert get_authn_context_class_ref(xml) == SPID_L3

    def test_unprefixed_element(self):
        xml = f"<Response><AuthnContextClassRef>{SPID_L1}</AuthnContextClassRef></Response>"
        assert get_authn_context_class_ref(xml) == SPID_L1


class TestSpidLevelResolution:
    def test_recognized_level_is_kept(self, caplog):
        with caplog.at_level(logging.WARNING, logger="onboarding_pa.spid"):
            assert resolve_spid_level(SPID_L3, issuer="idp") is SpidLevel.L3
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_missing_level_defaults_to_l2_silently(self, caplog):
        with caplog.at_level(logging.WARNING, logger="onboarding_pa.spid"):
            assert resolve_spid_level(None) is DEFAULT_SPID_LEVEL
        assert DEFAULT_SPID_LEVEL is SpidLevel.L2
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_unrecognized_level_defaults_and_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="onboarding_pa.spid"):
            level = resolve_spid_level("urn:oasis:names:tc:SAML:2.0:ac:classes:Password", issuer="https://idp.spid.test")
        assert level is SpidLevel.L2
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "https://idp.spid.test" in warnings[0].getMessage()
        assert "Password" in warnings[0].getMessage()


class TestValidateSpidUser:
    def test_valid_assertion(self):
        user = validate_spid_user(raw_assertion(xml=assertion_xml(SPID_L3)))

        assert user.fiscal_number == FISCAL_CODE
        assert user.authn_context_class_ref is SpidLevel.L3
        assert user.email == "mario.rossi@comune.roma.it"
        assert user.issuer.text == "https://idp.spid.test"
        assert user.name_id is None
        assert "name_id" not in user.model_fields_set
        assert "nameId" not in user.model_dump(by_alias=True, exclude_unset=True)

    def test_optional_session_fields_are_preserved(self):
        user = validate_spid_user(
            raw_assertion(
                nameId="_abc123",
                nameIdFormat="urn:oasis:names:tc:SAML:2.0:nameid-format:transient",
                sessionIndex="_session",
            )
        )
        dumped = user.model_dump(by_alias=True, exclude_unset=True)
        assert dumped["nameId"] == "_abc123"
        assert dumped["nameIdFormat"] == "urn:oasis:names:tc:SAML:2.0:nameid-format:transient"
        assert dumped["sessionIndex"] == "_session"

    @pytest.mark.parametrize("field", ["nameId", "nameIdFormat", "sessionIndex"])
    def test_optional_session_fields_reject_null(self, field):
        with pytest.raises(SpidUserValidationError) as exc:
            validate_spid_user(raw_assertion(**{field: None}))
        assert any(v.startswith(field) for v in exc.value.violations)

    def test_unprefixed_fiscal_number(self):
        user = validate_spid_user(raw_assertion(fiscalNumber=FISCAL_CODE))
        assert user.fiscal_number == FISCAL_CODE

    def test_unparsable_xml_falls_back_to_default_level(self):
        user = validate_spid_user(raw_assertion(xml="<<garbage"))
        assert user.authn_context_class_ref is SpidLevel.L2

    def test_missing_level_falls_back_to_default_level(self):
        user = validate_spid_user(raw_assertion(xml=assertion_xml(None)))
        assert user.authn_context_class_ref is SpidLevel.L2

    def test_invalid_level_from_idp_is_overridden(self, caplog):
        with caplog.at_level(logging.WARNING, logger="onboarding_pa.spid"):
            user = validate_spid_user(
                raw_assertion(xml=assertion_xml("SpidL2"), authnContextClassRef="SpidL2")
            )
        assert user.authn_context_class_ref is SpidLevel.L2
        assert any("valid SPID level" in r.getMessage() for r in caplog.records)

    def test_missing_fiscal_number_fails_first(self):
        calls = []

        def get_assertion_xml():
            calls.append(True)
            return assertion_xml(SPID_L2)

        value = raw_assertion(getAssertionXml=get_assertion_xml, email="not-an-email")
        del value["fiscalNumber"]

        with pytest.raises(MissingFiscalNumberError):
            validate_spid_user(value)
        assert calls == []

    def test_non_mapping_has_no_fiscal_number(self):
        with pytest.raises(MissingFiscalNumberError):
            validate_spid_user(None)

    def test_structural_errors_are_all_reported(self):
        with pytest.raises(SpidUserValidationError) as exc:
            validate_spid_user(
                raw_assertion(
                    fiscalNumber="TINIT-ABC123",
                    email="not-an-email",
                    mobilePhone="",
                )
            )

        violations = exc.value.violations
        assert exc.value.details == violations
        assert any(v.startswith("fiscalNumber") for v in violations)
        assert any(v.startswith("email") for v in violations)
        assert any(v.startswith("mobilePhone") for v in violations)
        assert " / ".join(violations) in exc.value.message
        assert exc.value.message.startswith("Cannot validate SPID user object: ")

    def test_missing_required_fields(self):
        value = raw_assertion()
        del value["issuer"]
        del value["name"]
        with pytest.raises(SpidUserValidationError) as exc:
            validate_spid_user(value)
        locations = {v.split(":", 1)[0] for v in exc.value.violations}
        assert {"issuer", "name"} <= locations

    def test_non_string_fiscal_number_is_a_structural_error(self):
        with pytest.raises(SpidUserValidationError):
            validate_spid_user(raw_assertion(fiscalNumber=12345))


class TestBuildLoggedUser:
    def test_folds_spid_user_into_logged_user(self):
        spid_user = validate_spid_user(raw_assertion(xml=assertion_xml(SPID_L1), sessionIndex="_s1"))

        logged = build_logged_user(spid_user, "token", created_at=1571443200000)

        assert logged.fiscal_code == FISCAL_CODE
        assert logged.spid_level is SpidLevel.L1
        assert logged.spid_email == spid_user.email
        assert logged.spid_mobile_phone == spid_user.mobile_phone
        assert logged.spid_idp == "https://idp.spid.test"
        assert logged.created_at == 1571443200000

        payload = logged.to_session_payload()
        assert payload["sessionIndex"] == "_s1"
        assert "nameId" not in payload
        assert payload["spidLevel"] == SPID_L1
