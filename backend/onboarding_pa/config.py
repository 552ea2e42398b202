import json
import os
import threading
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()


def _parse_http_url(name: str, value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"{name} must be a valid http/https URL with host")
    return value


def _parse_positive_int(name: str, raw: str | int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value <= 0:
        raise ValueError(f"{name} must be greater than 0")
    return value


def _parse_non_negative_int(name: str, raw: str | int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 0:
        raise ValueError(f"{name} must be greater than or equal to 0")
    return value


def _parse_positive_float(name: str, raw: str | float) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number") from exc
    if not value > 0:
        raise ValueError(f"{name} must be greater than 0")
    return value


class SamlSettings(BaseModel):
    idp_metadata_url: str = Field(default="")
    callback_url: str = Field(default="")
    issuer: str = Field(default="")
    attribute_consuming_service_index: int = Field(default=0)
    accepted_clock_skew_ms: int = Field(default=0)
    spid_autologin: str = Field(default="")
    spid_testenv_url: str = Field(default="")
    key_path: str = Field(default="./certs/key.pem")
    cert_path: str = Field(default="./certs/cert.pem")

    @classmethod
    def from_env(cls) -> "SamlSettings":
        return cls(
            idp_metadata_url=os.getenv("IDP_METADATA_URL", "").strip(),
            callback_url=os.getenv("SAML_CALLBACK_URL", "").strip(),
            issuer=os.getenv("SAML_ISSUER", "").strip(),
            attribute_consuming_service_index=_parse_non_negative_int(
                "SAML_ATTRIBUTE_CONSUMING_SERVICE_INDEX",
                os.getenv("SAML_ATTRIBUTE_CONSUMING_SERVICE_INDEX", "").strip() or 0,
            ),
            accepted_clock_skew_ms=_parse_non_negative_int(
                "SAML_ACCEPTED_CLOCK_SKEW_MS",
                os.getenv("SAML_ACCEPTED_CLOCK_SKEW_MS", "").strip() or 0,
            ),
            spid_autologin=os.getenv("SPID_AUTOLOGIN", ""),
            spid_testenv_url=os.getenv("SPID_TESTENV_URL", "").strip(),
            key_path=os.getenv("SAML_KEY_PATH", cls.model_fields["key_path"].default),
            cert_path=os.getenv("SAML_CERT_PATH", cls.model_fields["cert_path"].default),
        )

    def missing(self) -> list[str]:
        """Names of the SAML variables a SPID strategy cannot be built without."""
        required = {
            "IDP_METADATA_URL": self.idp_metadata_url,
            "SAML_ACCEPTED_CLOCK_SKEW_MS": self.accepted_clock_skew_ms,
            "SAML_ATTRIBUTE_CONSUMING_SERVICE_INDEX": self.attribute_consuming_service_index,
            "SAML_CALLBACK_URL": self.callback_url,
            "SAML_ISSUER": self.issuer,
            "SPID_TESTENV_URL": self.spid_testenv_url,
        }
        return [name for name, value in required.items() if not value]


class Settings(BaseModel):
    app_name: str = Field(default="Onboarding PA Backend")
    debug: bool = Field(default=False)
    database_url: str = Field(default="")
    redis_url: str = Field(default="redis://localhost:6379/0")
    allowed_origins: list[str] = Field(default_factory=list)
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_pool_recycle: int = Field(default=1800)
    db_pool_pre_ping: bool = Field(default=True)
    ipa_elasticsearch_endpoint: str = Field(default="http://localhost:9200")
    ipa_search_timeout_seconds: float = Field(default=10.0)
    session_ttl_seconds: int = Field(default=3600)
    saml: SamlSettings = Field(default_factory=SamlSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        raw_allowed_origins = os.getenv("ALLOWED_ORIGINS", "").strip()
        if not raw_allowed_origins:
            raise ValueError("ALLOWED_ORIGINS environment variable must be set")

        # Support both CSV format and JSON array format
        allowed_origins: list[str] = []
        if raw_allowed_origins.startswith("["):
            try:
                parsed_list = json.loads(raw_allowed_origins)
                if not isinstance(parsed_list, list):
                    raise ValueError("ALLOWED_ORIGINS JSON must be an array")
                allowed_origins = [
                    origin.strip() for origin in parsed_list if isinstance(origin, str) and origin.strip()
                ]
            except json.JSONDecodeError as exc:
                raise ValueError(f"ALLOWED_ORIGINS JSON is malformed: {exc}") from exc
        else:
            allowed_origins = [
                origin.strip() for origin in raw_allowed_origins.split(",") if origin.strip()
            ]

        if not allowed_origins:
            raise ValueError("ALLOWED_ORIGINS must contain at least one origin")

        if "*" in allowed_origins:
            raise ValueError(
                "ALLOWED_ORIGINS cannot contain '*' when credentialed requests are used"
            )

        for origin in allowed_origins:
            parsed = urlparse(origin)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise ValueError(
                    "ALLOWED_ORIGINS must contain valid http/https origins with host"
                )

        database_url = os.getenv("DATABASE_URL", "").strip()
        if not database_url:
            raise ValueError("DATABASE_URL environment variable must be set")

        parsed_db = urlparse(database_url)
        if parsed_db.scheme != "postgresql+asyncpg":
            raise ValueError("DATABASE_URL must start with 'postgresql+asyncpg://'")
        if not parsed_db.hostname:
            raise ValueError("DATABASE_URL must include hostname")

        db_pool_size = _parse_positive_int(
            "DB_POOL_SIZE", os.getenv("DB_POOL_SIZE", cls.model_fields["db_pool_size"].default)
        )

        db_max_overflow = _parse_non_negative_int(
            "DB_MAX_OVERFLOW",
            os.getenv("DB_MAX_OVERFLOW", cls.model_fields["db_max_overflow"].default),
        )

        db_pool_recycle = _parse_positive_int(
            "DB_POOL_RECYCLE",
            os.getenv("DB_POOL_RECYCLE", cls.model_fields["db_pool_recycle"].default),
        )

        raw_db_pool_pre_ping = os.getenv(
            "DB_POOL_PRE_PING", str(cls.model_fields["db_pool_pre_ping"].default)
        ).strip().lower()
        if raw_db_pool_pre_ping in {"1", "true", "yes", "on"}:
            db_pool_pre_ping = True
        elif raw_db_pool_pre_ping in {"0", "false", "no", "off"}:
            db_pool_pre_ping = False
        else:
            raise ValueError("DB_POOL_PRE_PING must be a boolean value")

        redis_url = os.getenv("REDIS_URL", cls.model_fields["redis_url"].default).strip()

        ipa_elasticsearch_endpoint = _parse_http_url(
            "IPA_ELASTICSEARCH_ENDPOINT",
            os.getenv(
                "IPA_ELASTICSEARCH_ENDPOINT",
                cls.model_fields["ipa_elasticsearch_endpoint"].default,
            ).strip(),
        )

        session_ttl_seconds = _parse_positive_int(
            "SESSION_TTL_SECONDS",
            os.getenv("SESSION_TTL_SECONDS", cls.model_fields["session_ttl_seconds"].default),
        )

        return cls(
            app_name=os.getenv("APP_NAME", cls.model_fields["app_name"].default),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            database_url=database_url,
            redis_url=redis_url,
            allowed_origins=allowed_origins,
            db_pool_size=db_pool_size,
            db_max_overflow=db_max_overflow,
            db_pool_recycle=db_pool_recycle,
            db_pool_pre_ping=db_pool_pre_ping,
            ipa_elasticsearch_endpoint=ipa_elasticsearch_endpoint,
            ipa_search_timeout_seconds=_parse_positive_float(
                "IPA_SEARCH_TIMEOUT_SECONDS",
                os.getenv(
                    "IPA_SEARCH_TIMEOUT_SECONDS",
                    cls.model_fields["ipa_search_timeout_seconds"].default,
                ),
            ),
            session_ttl_seconds=session_ttl_seconds,
            saml=SamlSettings.from_env(),
        )


# Settings validation happens on first access, not at import time
_settings_instance: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Get settings instance, creating it on first access.

    Uses double-checked locking so concurrent first accesses build a single
    instance.

    Raises:
        ValueError: If required environment variables are missing or invalid
    """
    global _settings_instance

    if _settings_instance is not None:
        return _settings_instance

    with _settings_lock:
        if _settings_instance is None:
            _settings_instance = Settings.from_env()

    return _settings_instance


class _SettingsProxy:
    """Proxy to defer settings creation until first attribute access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)


settings = _SettingsProxy()  # type: ignore[assignment]
