"""
Configuration management using Pydantic Settings.
Values come from CRUNCH_* environment variables or a .env file.
"""

from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


SUPPORTED_CHAINS = ["polkadot", "kusama", "westend", "paseo"]
RUN_MODES = ["once", "daily", "turbo", "era"]

DAILY_INTERVAL = 86400
TURBO_INTERVAL = 21600


def _split_csv(value):
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class CrunchSettings(BaseSettings):
    """Service settings. Built once by the entry point and passed around explicitly."""

    model_config = SettingsConfigDict(
        env_prefix="CRUNCH_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Chain
    chain: str = "westend"
    substrate_ws_url: str = ""
    chain_client_factory: str = ""
    seed_path: str = ".private.seed"

    # Stashes
    stashes: Annotated[List[str], NoDecode] = Field(default_factory=list)
    stashes_url: str = ""
    github_pat: str = ""
    unique_stashes_enabled: bool = True

    # Run mode
    run_mode: str = "era"
    interval: int = TURBO_INTERVAL  # seconds

    # Payouts
    maximum_payouts: int = Field(default=4, ge=1)
    maximum_history_eras: int = Field(default=4, ge=1)
    maximum_calls: int = Field(default=64, ge=1)
    existential_deposit_factor_warning: int = 2
    tx_tip: int = 0
    tx_mortal_period: int = 64

    # Backoff
    error_interval: int = Field(default=5, ge=2)  # minutes, exponential base
    maximum_error_interval: int = 180  # minutes
    transient_cooldown: int = 30  # seconds
    era_trigger_max_wait: int = 240  # seconds

    # Nomination pools
    pool_ids: Annotated[List[int], NoDecode] = Field(default_factory=list)
    pool_members_compound_enabled: bool = False
    pool_only_operator_compound_enabled: bool = False
    pool_claim_commission_enabled: bool = False
    pool_compound_threshold: int = 0

    # Notifications
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # json or console
    log_file: Optional[str] = None
    debug: bool = False

    @field_validator("stashes", "pool_ids", mode="before")
    @classmethod
    def split_lists(cls, v):
        return _split_csv(v)

    @field_validator("chain")
    @classmethod
    def validate_chain(cls, v: str) -> str:
        v = v.lower()
        if v not in SUPPORTED_CHAINS:
            raise ValueError(f"Chain must be one of: {SUPPORTED_CHAINS}")
        return v

    @field_validator("run_mode")
    @classmethod
    def validate_run_mode(cls, v: str) -> str:
        v = v.lower()
        if v not in RUN_MODES:
            raise ValueError(f"Run mode must be one of: {RUN_MODES}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v not in ("json", "console"):
            raise ValueError("Log format must be 'json' or 'console'")
        return v

    @property
    def run_interval(self) -> int:
        """Seconds between runs in interval mode."""
        if self.run_mode == "daily":
            return DAILY_INTERVAL
        if self.run_mode == "turbo":
            return TURBO_INTERVAL
        return self.interval

    @property
    def is_era_driven(self) -> bool:
        return self.run_mode == "era"

    @property
    def pools_enabled(self) -> bool:
        return bool(self.pool_ids) or self.pool_only_operator_compound_enabled

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)
