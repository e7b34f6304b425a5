"""
Configuration management for the batch minter.

Supports configuration via environment variables and .env files. Values are
validated once at startup and handed to the orchestrator as a plain object.
"""

from typing import Any, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


MAX_TOKENS_IN_BATCH = 250


class ConfigurationError(Exception):
    """Raised when the minter configuration is missing or invalid."""
    pass


class MinterConfig(BaseSettings):
    """
    Configuration settings for the batch minter.

    Environment variable names match the field names (BOT_KEY, WS_ENDPOINT,
    TOKEN_COUNT_IN_BATCH, ...), without a prefix.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Signer settings
    bot_key: str = Field(
        min_length=1,
        description="Secret URI or mnemonic of the bot account that signs every extrinsic"
    )

    # Node settings
    ws_endpoint: str = Field(
        default="ws://localhost:9944",
        description="WebSocket RPC endpoint of the node"
    )
    connection_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Socket timeout used when connecting to the node"
    )

    # Minting plan
    collection_count: int = Field(
        default=1,
        ge=1,
        description="Number of collections to create"
    )
    token_count_per_collection: int = Field(
        default=1000,
        ge=1,
        description="Number of tokens minted into each collection"
    )
    token_count_in_batch: int = Field(
        default=100,
        ge=1,
        le=MAX_TOKENS_IN_BATCH,
        description="Maximum number of tokens per batch_mint extrinsic"
    )
    initial_supply: int = Field(
        default=1,
        ge=1,
        description="Initial supply of every created token"
    )
    max_token_supply: int = Field(
        default=1,
        ge=1,
        description="Collection policy: maximum supply per token"
    )
    force_single_mint: bool = Field(
        default=False,
        description="Collection policy: force single mint"
    )
    unit_price: Optional[int] = Field(
        default=None,
        ge=0,
        description="Unit price for created tokens (optional)"
    )

    # Runtime capabilities
    supports_sufficiency_param: Optional[bool] = Field(
        default=None,
        description="Whether CreateToken takes a sufficiency param; probed once at startup if unset"
    )
    sufficiency_type_name: str = Field(
        default="ep_multi_tokens::policy::mint::SufficiencyParam",
        description="Runtime type whose presence signals sufficiency param support"
    )

    # Submission settings
    mortality_period: int = Field(
        default=1024,
        ge=4,
        description="Validity window of signed extrinsics, in blocks"
    )
    max_attempts: int = Field(
        default=11,
        ge=1,
        description="Maximum submission attempts per extrinsic"
    )
    retry_backoff_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Base delay between attempts, doubled after every failure"
    )
    retry_backoff_max_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Upper bound for the delay between attempts"
    )
    inclusion_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Maximum time to wait for an extrinsic to be included in a block"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    def retry_delay(self, attempt: int) -> float:
        """Delay before the attempt following ``attempt`` (zero-based)."""
        if self.retry_backoff_seconds <= 0:
            return 0.0
        return min(
            self.retry_backoff_seconds * (2 ** attempt),
            self.retry_backoff_max_seconds,
        )


def load_config(**overrides: Any) -> MinterConfig:
    """
    Build and validate the configuration.

    Args:
        **overrides: Values taking precedence over the environment (None values are ignored)

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If a setting is missing or out of range
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return MinterConfig(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'config'}: {error['msg']}"
            for error in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e
