"""Centralized configuration for PersonaPass.

Uses Pydantic BaseSettings with environment variable loading and validation.
All PP_* environment variables are validated at import time.
"""

from __future__ import annotations

import logging
import re

from limits import parse
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

_DEFAULT_CORS_ORIGINS = ",".join(
    [
        "http://localhost:3000",
        "http://localhost:3001",
        "http://localhost:3004",
        "https://persona-website-rho.vercel.app",
        "https://persona-wallet-eight.vercel.app",
        "https://persona-pass.vercel.app",
        "https://*.personapass.me",
        "https://*.vercel.app",
    ]
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Runtime
    environment: str = Field(
        default="development", description="Runtime mode: development, production or test"
    )

    # Logging
    log_format: str = Field(default="text", description="Log format: text or json")
    log_level: str = Field(default="INFO", description="Python log level")

    # Server
    host: str = Field(default="0.0.0.0", description="Server bind host")  # noqa: S104
    port: int = Field(default=3001, ge=1, le=65535, description="Server bind port")

    # CORS
    cors_origins: str = Field(
        default=_DEFAULT_CORS_ORIGINS,
        description="Comma-separated CORS origins; '*' inside an origin matches a subdomain",
    )

    # Rate limiting
    rate_limit: str = Field(
        default="100/minute",
        description="Per-client fixed-window limit (e.g., 100/minute). Set to 'none' to disable.",
    )
    rate_limit_storage: str = Field(
        default="memory://", description="Storage URI for rate limit counters"
    )

    # PersonaChain
    chain_rpc_url: str = Field(default="http://localhost:26657", description="Tendermint RPC")
    chain_api_url: str = Field(default="http://localhost:1317", description="Cosmos REST API")
    chain_id: str = Field(default="personachain-1", description="Chain identifier")
    chain_timeout: float = Field(
        default=3.0, gt=0, le=30, description="Upstream status probe timeout in seconds"
    )

    # Lambda integrations (reported by /api/status only)
    lambda_totp_setup_url: str | None = Field(default=None)
    lambda_totp_verify_url: str | None = Field(default=None)
    lambda_session_create_url: str | None = Field(default=None)

    # TOTP
    issuer_name: str = Field(default="PersonaPass", min_length=1, max_length=64)

    model_config = {
        "env_prefix": "PP_",
        "case_sensitive": False,
        "extra": "ignore",
        "env_file": ".env",
    }

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        v = v.lower()
        if v not in ("development", "production", "test"):
            msg = f"PP_ENVIRONMENT must be 'development', 'production' or 'test', got '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "json"):
            msg = f"PP_LOG_FORMAT must be 'text' or 'json', got '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if not isinstance(logging.getLevelName(v), int):
            msg = f"PP_LOG_LEVEL must be a valid Python log level, got '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("rate_limit")
    @classmethod
    def validate_rate_limit(cls, v: str) -> str:
        v = v.strip()
        if v.lower() == "none":
            return "none"
        try:
            parse(v)
        except ValueError as exc:
            msg = f"PP_RATE_LIMIT must look like '100/minute' or be 'none', got '{v}'"
            raise ValueError(msg) from exc
        return v

    @field_validator("chain_rpc_url", "chain_api_url")
    @classmethod
    def validate_chain_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            msg = f"PersonaChain endpoints must be http(s) URLs, got '{v}'"
            raise ValueError(msg)
        return v.rstrip("/")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def rate_limit_enabled(self) -> bool:
        return self.rate_limit.strip().lower() != "none"

    @property
    def cors_origin_list(self) -> list[str]:
        """Return the exact (wildcard-free) CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip() and "*" not in o]

    @property
    def cors_origin_regex(self) -> str | None:
        """Return a regex matching the wildcard CORS origins, or None."""
        patterns = [
            re.escape(o.strip()).replace(r"\*", r"[A-Za-z0-9-]+")
            for o in self.cors_origins.split(",")
            if "*" in o and o.strip() != "*"
        ]
        if not patterns:
            return None
        return "^(" + "|".join(patterns) + ")$"

    @property
    def cors_allow_all(self) -> bool:
        return any(o.strip() == "*" for o in self.cors_origins.split(","))


# Singleton, validated at import time.
settings = Settings()
