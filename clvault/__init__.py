"""
clvault - Concentrated Liquidity Yield Vault

기초 자산을 단일 집중 유동성 포지션에 배치하고, 오라클 가격으로 포지션 가치를
평가하여 비례 지분을 발행/소각하는 vault 회계 엔진.
"""

__version__ = "0.1.0"

from .constants import Q96, MIN_TICK, MAX_TICK
from .config import VaultConfig
from .errors import (
    VaultError,
    ValidationError,
    OracleError,
    SlippageError,
    AuthorizationError,
    ReentrancyError,
    PositionMismatch,
)
from .oracle import PriceOracle
from .position import PositionLedger, LedgerState
from .valuation import ValuationEngine
from .range_manager import RangeManager
from .vault import Vault
