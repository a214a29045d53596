"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

import json
from urllib.parse import urlparse

from loguru import logger
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from chainmirror.config.constants import (
    DEFAULT_CHAINS,
    DEFAULT_HOT_TTL_SECONDS,
    DEFAULT_RECENT_LIMIT,
)
from chainmirror.models.enums import ChainFamily
from chainmirror.utils.exceptions import ConfigurationError


class ChainConfig(BaseModel):
    """
    Immutable per-chain descriptor.

    Accepts both the snake_case names and the camelCase/`type` spelling
    used by existing chain config files.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1, max_length=64)
    family: ChainFamily = Field(
        ..., validation_alias=AliasChoices("family", "type")
    )
    name: str = Field(..., min_length=1)
    rpc_url: str = Field(
        ..., validation_alias=AliasChoices("rpc_url", "rpcUrl")
    )

    @field_validator("family", mode="before")
    @classmethod
    def normalize_family(cls, v: object) -> object:
        """Accept lower-case family names."""
        return v.upper() if isinstance(v, str) else v

    @field_validator("rpc_url")
    @classmethod
    def validate_rpc_url(cls, v: str) -> str:
        """Validate RPC endpoint is an absolute http(s) URL."""
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(
                f"Invalid RPC endpoint: {v}. "
                "Must be an absolute http:// or https:// URL."
            )
        return v


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/indexer.db"
    database_echo: bool = False

    # Redis (hot cache)
    redis_url: str = "redis://localhost:6379/0"

    # Polling
    poll_interval_ms: int = Field(
        default=3000, ge=100, description="Delay between poller ticks in milliseconds"
    )
    initial_backfill: int = Field(
        default=10,
        ge=1,
        description="Trailing window of positions indexed on first run",
    )
    backfill_from_genesis: bool = Field(
        default=False,
        description="Index from position 0 on first run instead of the trailing window",
    )
    receipt_concurrency: int = Field(
        default=8, ge=1, le=64, description="Concurrent receipt fetches per EVM block"
    )
    rpc_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Total transport timeout per RPC call"
    )

    # Cache
    cache_recent_limit: int = Field(
        default=DEFAULT_RECENT_LIMIT,
        ge=1,
        description="Entries kept in each recent set",
    )
    cache_hot_ttl_seconds: int = Field(
        default=DEFAULT_HOT_TTL_SECONDS,
        ge=1,
        description="Expiry of point cache entries",
    )

    # Chains (JSON list of chain descriptors)
    indexer_chains_json: str | None = None

    # Application
    log_level: str = "INFO"
    log_file: str | None = None
    health_check_enabled: bool = True
    health_check_port: int = Field(
        default=8080, ge=1, le=65535, description="Health check HTTP server port"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL uses an async driver."""
        if not v.startswith(("sqlite+aiosqlite://", "postgresql+asyncpg://")):
            raise ValueError(
                "DATABASE_URL must start with sqlite+aiosqlite:// "
                "or postgresql+asyncpg://"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        return v.upper()

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.poll_interval_ms / 1000

    def get_chains(self) -> list[ChainConfig]:
        """
        Parse configured chains.

        Falls back to the local anvil + solana pair when
        INDEXER_CHAINS_JSON is not set.

        Returns:
            List of validated chain descriptors

        Raises:
            ConfigurationError: If the chain list is malformed
        """
        if not self.indexer_chains_json:
            raw_chains = DEFAULT_CHAINS
        else:
            try:
                raw_chains = json.loads(self.indexer_chains_json)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(
                    f"INDEXER_CHAINS_JSON is not valid JSON: {exc}"
                ) from exc

        if not isinstance(raw_chains, list) or not raw_chains:
            raise ConfigurationError(
                "INDEXER_CHAINS_JSON must be a non-empty JSON list"
            )

        chains: list[ChainConfig] = []
        seen: set[str] = set()
        for index, raw in enumerate(raw_chains):
            try:
                chain = ChainConfig.model_validate(raw)
            except ValidationError as exc:
                raise ConfigurationError(
                    f"Invalid chain definition #{index}: {exc}"
                ) from exc
            if chain.id in seen:
                raise ConfigurationError(f"Duplicate chain id: {chain.id}")
            seen.add(chain.id)
            chains.append(chain)

        logger.debug(
            f"Loaded {len(chains)} chains: "
            f"{', '.join(f'{c.id} ({c.family})' for c in chains)}"
        )
        return chains


# Global settings instance
settings = Settings()
