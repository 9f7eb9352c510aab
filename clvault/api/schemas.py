"""
API Response Schemas using Pydantic

Defines data models for the read-only vault status endpoints.
All token amounts are integers in the token's smallest unit; prices and
share price are 18-decimal fixed point.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class HealthCheckResponse(BaseModel):
    """Response for GET /api/v1/health"""
    status: str = Field(..., description="API health status")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(..., description="Current server timestamp")


class PositionSnapshot(BaseModel):
    """Active concentrated-liquidity position"""
    token_id: int = Field(..., description="Position manager token id")
    tick_lower: int = Field(..., description="Lower tick of the range")
    tick_upper: int = Field(..., description="Upper tick of the range")
    liquidity: int = Field(..., description="Position liquidity", ge=0)
    staked: bool = Field(..., description="Whether the position is staked in the gauge")


class ValuationBreakdown(BaseModel):
    """Inputs of the total-value figure"""
    amount0: int = Field(..., description="token0 held by the position at the live pool price")
    amount1: int = Field(..., description="token1 held by the position at the live pool price")
    price0: int = Field(..., description="Oracle price of token0 (18 decimals)")
    price1: int = Field(..., description="Oracle price of token1 (18 decimals)")
    total_usd: int = Field(..., description="Position value in USD (18 decimals)")


class VaultStatusResponse(BaseModel):
    """Response for GET /api/v1/vault"""
    base_token: str = Field(..., description="Deposit asset address")
    total_value: int = Field(..., description="Total value in base-asset units")
    total_supply: int = Field(..., description="Outstanding shares")
    share_price: int = Field(..., description="Base-asset value per whole share (18 decimals)")
    paused: bool = Field(..., description="Deposits/withdrawals paused")
    pending_rewards: int = Field(..., description="Harvested rewards not yet compounded or locked")
    state: str = Field(..., description="Position ledger state")
    position: Optional[PositionSnapshot] = None
    valuation: Optional[ValuationBreakdown] = None

    class Config:
        json_schema_extra = {
            "example": {
                "base_token": "0xbase",
                "total_value": 10000000000000000000,
                "total_supply": 10000000000000000000,
                "share_price": 1000000000000000000,
                "paused": False,
                "pending_rewards": 0,
                "state": "staked",
                "position": {
                    "token_id": 1,
                    "tick_lower": 74160,
                    "tick_upper": 77820,
                    "liquidity": 123456789,
                    "staked": True
                },
                "valuation": None
            }
        }


class RebalanceStatusResponse(BaseModel):
    """Response for GET /api/v1/vault/rebalance"""
    needs_rebalance: bool
    current_tick: int = Field(..., description="Live pool tick")
    tick_lower: Optional[int] = None
    tick_upper: Optional[int] = None


class AccountSharesResponse(BaseModel):
    """Response for GET /api/v1/vault/shares/{account}"""
    account: str
    shares: int = Field(..., ge=0)
    max_withdraw: int = Field(..., description="Base assets redeemable for the full balance", ge=0)
