"""
Vault configuration

Tick spacing, slippage bounds, oracle gating thresholds and token wiring are
gathered in a single validated model that is passed to the vault constructor.
Values can also be loaded from environment variables (``.env`` supported).
"""
import os
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from .constants import BPS, MAX_TICK
from .types import Route

ENV_PREFIX = "CLVAULT_"


class VaultConfig(BaseModel):
    """Vault parameters, validated once at startup"""

    # Token wiring (pool token0/token1 ordering)
    token0: str = Field(..., min_length=1, description="Pool token0 address")
    token1: str = Field(..., min_length=1, description="Pool token1 address")
    base_token: str = Field(..., min_length=1, description="Deposit asset, one of token0/token1")
    decimals0: int = Field(default=18, ge=0, le=36)
    decimals1: int = Field(default=18, ge=0, le=36)
    feed_ids: Dict[str, str] = Field(..., description="Price feed id per token address")
    reward_token: Optional[str] = Field(default=None, description="Gauge emission token")

    # Accounts
    vault_address: str = Field(..., min_length=1)
    admin: str = Field(..., min_length=1)

    # Range sizing
    tick_spacing: int = Field(default=60, gt=0, le=MAX_TICK)
    range_width_bps: int = Field(default=2000, gt=0, lt=BPS)

    # Share accounting
    min_deposit: int = Field(default=10 ** 15, gt=0)

    # Oracle gating
    staleness_threshold: int = Field(default=60, gt=0, description="Max quote age (seconds)")
    max_confidence_bps: int = Field(default=100, gt=0, le=BPS)

    # Slippage bounds
    swap_slippage_bps: int = Field(default=50, ge=0, le=BPS)
    liquidity_slippage_bps: int = Field(default=500, ge=0, le=BPS)
    min_withdraw_bps: int = Field(default=9800, gt=0, le=BPS)

    # External call deadline / governance
    deadline_seconds: int = Field(default=300, gt=0)
    lock_duration: int = Field(default=4 * 365 * 24 * 3600, gt=0)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "token0": "0xbase",
                "token1": "0xusdc",
                "base_token": "0xbase",
                "feed_ids": {"0xbase": "BASE/USD", "0xusdc": "USDC/USD"},
                "vault_address": "0xvault",
                "admin": "0xadmin",
                "tick_spacing": 60,
            }
        }

    @model_validator(mode="after")
    def _check_wiring(self) -> "VaultConfig":
        if self.token0 == self.token1:
            raise ValueError("token0 and token1 must differ")
        if self.base_token not in (self.token0, self.token1):
            raise ValueError(f"base_token {self.base_token} is not a pool token")
        missing = [t for t in (self.token0, self.token1) if t not in self.feed_ids]
        if missing:
            raise ValueError(f"missing price feed for: {', '.join(missing)}")
        if self.vault_address == self.admin:
            raise ValueError("vault_address and admin must differ")
        return self

    @property
    def base_is_token0(self) -> bool:
        return self.base_token == self.token0

    @property
    def paired_token(self) -> str:
        return self.token1 if self.base_is_token0 else self.token0

    @property
    def base_decimals(self) -> int:
        return self.decimals_of(self.base_token)

    def decimals_of(self, token: str) -> int:
        if token == self.token0:
            return self.decimals0
        if token == self.token1:
            return self.decimals1
        raise KeyError(token)

    def feed_for(self, token: str) -> str:
        return self.feed_ids[token]

    def route(self, token_in: str, token_out: str) -> Route:
        return (token_in, token_out)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "VaultConfig":
        """Build a config from ``CLVAULT_*`` environment variables

        Feeds are given as ``CLVAULT_FEED_IDS=token:feed,token:feed``.
        """
        load_dotenv(env_file)

        def env(name: str, default: Optional[str] = None) -> Optional[str]:
            return os.getenv(ENV_PREFIX + name, default)

        feeds: Dict[str, str] = {}
        for item in (env("FEED_IDS") or "").split(","):
            if ":" in item:
                token, feed = item.split(":", 1)
                feeds[token.strip()] = feed.strip()

        values = {
            "token0": env("TOKEN0", ""),
            "token1": env("TOKEN1", ""),
            "base_token": env("BASE_TOKEN", ""),
            "feed_ids": feeds,
            "reward_token": env("REWARD_TOKEN"),
            "vault_address": env("VAULT_ADDRESS", ""),
            "admin": env("ADMIN", ""),
        }
        int_fields = {
            "decimals0": "DECIMALS0",
            "decimals1": "DECIMALS1",
            "tick_spacing": "TICK_SPACING",
            "range_width_bps": "RANGE_WIDTH_BPS",
            "min_deposit": "MIN_DEPOSIT",
            "staleness_threshold": "STALENESS_THRESHOLD",
            "max_confidence_bps": "MAX_CONFIDENCE_BPS",
            "swap_slippage_bps": "SWAP_SLIPPAGE_BPS",
            "liquidity_slippage_bps": "LIQUIDITY_SLIPPAGE_BPS",
            "min_withdraw_bps": "MIN_WITHDRAW_BPS",
            "deadline_seconds": "DEADLINE_SECONDS",
            "lock_duration": "LOCK_DURATION",
        }
        for field, name in int_fields.items():
            raw = env(name)
            if raw is not None:
                values[field] = int(raw)
        return cls(**values)


class ApiSettings:
    """Status API settings"""

    API_VERSION: str = "1.0.0"
    API_TITLE: str = "clvault Status API"
    API_DESCRIPTION: str = "Read-only valuation and position status for a concentrated-liquidity vault"

    def __init__(self):
        self.CORS_ORIGINS: List[str] = os.getenv(
            ENV_PREFIX + "CORS_ORIGINS",
            "http://localhost:3000"
        ).split(",")
        self.DEBUG: bool = os.getenv(ENV_PREFIX + "DEBUG", "False").lower() == "true"
