"""Application configuration using Pydantic Settings."""

import re
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.exceptions import ConfigurationError

LANG_TAG_RE = re.compile(r"^[a-z]{2,3}(-[a-z0-9]{1,8})*$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys - Optional
    discogs_token: str | None = Field(
        None, description="Discogs personal access token (anonymous search if unset)"
    )

    # Outbound HTTP
    user_agent: str = Field(
        default="ReleaseMetadataEnricher/0.1.0 (bot; release enrichment service)",
        description="Client identifier sent with every provider request",
    )
    http_timeout: float = Field(default=15.0, description="Per-request timeout in seconds")
    rate_limit_retry_delay: float = Field(
        default=2.0, description="Seconds to wait before the single retry on HTTP 429"
    )

    # Provider endpoints
    discogs_api_base: str = Field(default="https://api.discogs.com")
    musicbrainz_api_base: str = Field(default="https://musicbrainz.org/ws/2")
    wikidata_entity_base: str = Field(default="https://www.wikidata.org/wiki/Special:EntityData")
    wikidata_sparql_base: str = Field(default="https://query.wikidata.org")
    wikipedia_base_template: str = Field(
        default="https://{lang}.wikipedia.org",
        description="Wikipedia host; {lang} is replaced by the requested language tag",
    )
    commons_api_base: str = Field(default="https://commons.wikimedia.org")

    # Pipeline behaviour
    default_lang: str = Field(default="en", description="Language tag when none is requested")
    default_max_images: int = Field(default=12, description="Gallery size when none is requested")
    musicbrainz_warm_related: bool = Field(
        default=True,
        description="Also fetch the release-group and artist after a MusicBrainz match",
    )

    # Response Cache Configuration
    response_cache_ttl: int = Field(
        default=900, description="TTL in seconds for finished enrichment documents"
    )
    response_cache_maxsize: int = Field(
        default=256, description="Maximum cached enrichment documents"
    )

    # Application Configuration
    host: str = Field(default="0.0.0.0", description="Host to bind the server to")
    port: int = Field(default=8000, description="Port to run the server on")
    log_level: str = Field(default="INFO", description="Logging level")

    # Feature Flags
    enable_telemetry: bool = Field(default=True, description="Enable PostHog telemetry")

    # PostHog Configuration
    posthog_api_key: str | None = Field(None, description="PostHog API key for telemetry")
    posthog_host: str = Field(default="https://us.i.posthog.com", description="PostHog host URL")

    # Sentry Configuration
    sentry_dsn: str | None = Field(None, description="Sentry DSN for error tracking")

    # Application Metadata
    app_name: str = Field(default="Release-Metadata-Enricher", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def wikipedia_base(self, lang: str) -> str:
        """Wikipedia host for a language tag.

        Raises:
            ConfigurationError: If the tag could not be a Wikipedia subdomain
        """
        lang = lang or self.default_lang
        if not LANG_TAG_RE.match(lang):
            raise ConfigurationError(f"Invalid language tag: {lang!r}", details={"lang": lang})
        return self.wikipedia_base_template.format(lang=lang)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
