# helpers/settings.py
from __future__ import annotations

import os
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

DEFAULT_SCOPES = (
    "oauth crm.objects.companies.read crm.objects.contacts.read "
    "crm.schemas.companies.read crm.schemas.contacts.read reports_read automation"
)


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return val.strip()


def _get_bool(name: str, default: bool = False) -> bool:
    val = _get_env(name)
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "on"}


def _get_int(name: str, default: int) -> int:
    try:
        return int(_get_env(name, str(default)))
    except (TypeError, ValueError):
        return default


class Settings(BaseModel):
    """
    Runtime configuration. Built once from the environment and handed to
    each component at construction.
    """

    hubspot_client_id: str = ""
    hubspot_client_secret: str = ""
    hubspot_redirect_uri: str = "http://localhost:3000/api/oauth-callback"
    hubspot_scopes: str = DEFAULT_SCOPES
    hubspot_auth_url: str = "https://app.hubspot.com/oauth/authorize"
    hubspot_token_url: str = "https://api.hubapi.com/oauth/v1/token"
    hubspot_token_info_url: str = "https://api.hubapi.com/oauth/v1/access-tokens"
    hubspot_api_base: str = "https://api.hubapi.com"

    http_timeout_seconds: float = 30.0

    # audit tunables
    sample_max_pages: int = 10
    sample_page_size: int = 100
    duplicate_sample_size: int = 100
    stale_report_days: int = 180
    exclude_reserved_properties: bool = False
    reserved_property_prefix: str = "hs_"
    average_scope: Literal["custom", "all"] = "custom"

    token_refresh_skew_seconds: int = 0

    # generative text
    text_provider: Optional[Literal["openai", "gemini"]] = None
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash-latest"

    database_url: Optional[str] = None
    log_level: str = "INFO"

    @property
    def resolved_text_provider(self) -> Optional[str]:
        if self.text_provider:
            return self.text_provider
        if self.openai_api_key:
            return "openai"
        if self.gemini_api_key:
            return "gemini"
        return None

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        port = _get_env("PORT", "3000")
        base = _get_env("PUBLIC_BASE_URL") or _get_env("RENDER_EXTERNAL_URL") or f"http://localhost:{port}"
        scope = (_get_env("AUDIT_AVERAGE_SCOPE", "custom") or "custom").lower()
        provider = (_get_env("TEXT_PROVIDER") or "").lower() or None
        return cls(
            hubspot_client_id=_get_env("HUBSPOT_CLIENT_ID", ""),
            hubspot_client_secret=_get_env("HUBSPOT_CLIENT_SECRET", ""),
            hubspot_redirect_uri=_get_env("HUBSPOT_REDIRECT_URI", f"{base.rstrip('/')}/api/oauth-callback"),
            hubspot_scopes=_get_env("HUBSPOT_SCOPES", DEFAULT_SCOPES),
            hubspot_auth_url=_get_env("HUBSPOT_AUTH_URL", cls.model_fields["hubspot_auth_url"].default),
            hubspot_token_url=_get_env("HUBSPOT_TOKEN_URL", cls.model_fields["hubspot_token_url"].default),
            hubspot_token_info_url=_get_env(
                "HUBSPOT_TOKEN_INFO_URL", cls.model_fields["hubspot_token_info_url"].default
            ),
            hubspot_api_base=_get_env("HUBSPOT_API_BASE", cls.model_fields["hubspot_api_base"].default),
            http_timeout_seconds=float(_get_int("HTTP_TIMEOUT_SECONDS", 30)),
            sample_max_pages=_get_int("AUDIT_SAMPLE_MAX_PAGES", 10),
            sample_page_size=_get_int("AUDIT_SAMPLE_PAGE_SIZE", 100),
            duplicate_sample_size=_get_int("DUPLICATE_SAMPLE_SIZE", 100),
            stale_report_days=_get_int("STALE_REPORT_DAYS", 180),
            exclude_reserved_properties=_get_bool("AUDIT_EXCLUDE_RESERVED_PROPERTIES", False),
            reserved_property_prefix=_get_env("AUDIT_RESERVED_PROPERTY_PREFIX", "hs_"),
            average_scope="all" if scope == "all" else "custom",
            token_refresh_skew_seconds=_get_int("TOKEN_REFRESH_SKEW_SECONDS", 0),
            text_provider=provider if provider in ("openai", "gemini") else None,
            openai_api_key=_get_env("OPENAI_API_KEY"),
            openai_model=_get_env("OPENAI_MODEL", "gpt-4o-mini"),
            gemini_api_key=_get_env("GEMINI_API_KEY"),
            gemini_model=_get_env("GEMINI_MODEL", "gemini-1.5-flash-latest"),
            database_url=_get_env("DATABASE_URL"),
            log_level=_get_env("LOG_LEVEL", "INFO"),
        )
