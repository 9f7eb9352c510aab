"""
Vault Status Endpoints

Read-only views over the vault: valuation, position, rebalance status and
per-account share balances. Oracle failures surface as 503 since the vault
refuses to value itself without a fresh, high-confidence quote.
"""
from fastapi import APIRouter, Depends, HTTPException, Request

from clvault.api.schemas import (
    AccountSharesResponse,
    PositionSnapshot,
    RebalanceStatusResponse,
    ValuationBreakdown,
    VaultStatusResponse,
)
from clvault.errors import OracleError, VaultError
from clvault.vault import Vault

router = APIRouter()


def get_vault(request: Request) -> Vault:
    return request.app.state.vault


def _raise_http(e: VaultError):
    if isinstance(e, OracleError):
        raise HTTPException(status_code=503, detail=f"Price oracle unavailable: {e}")
    raise HTTPException(status_code=400, detail=str(e))


@router.get("/vault", response_model=VaultStatusResponse)
async def vault_status(vault: Vault = Depends(get_vault)):
    """
    Vault status

    Returns total value, share supply, share price and the active position.
    """
    try:
        report = vault.valuation.breakdown()
        share_price = vault.share_price()
    except VaultError as e:
        _raise_http(e)

    position = vault.position
    return VaultStatusResponse(
        base_token=vault.config.base_token,
        total_value=report.total_value,
        total_supply=vault.total_supply,
        share_price=share_price,
        paused=vault.paused,
        pending_rewards=vault.pending_rewards,
        state=vault.ledger.state.value,
        position=PositionSnapshot(
            token_id=position.token_id,
            tick_lower=position.tick_lower,
            tick_upper=position.tick_upper,
            liquidity=position.liquidity,
            staked=position.staked
        ) if position else None,
        valuation=ValuationBreakdown(
            amount0=report.amount0,
            amount1=report.amount1,
            price0=report.price0,
            price1=report.price1,
            total_usd=report.total_usd
        ) if position else None
    )


@router.get("/vault/rebalance", response_model=RebalanceStatusResponse)
async def rebalance_status(vault: Vault = Depends(get_vault)):
    """Whether the live pool tick has left the active range"""
    position = vault.position
    return RebalanceStatusResponse(
        needs_rebalance=vault.needs_rebalance(),
        current_tick=vault.pool.current_state().tick,
        tick_lower=position.tick_lower if position else None,
        tick_upper=position.tick_upper if position else None
    )


@router.get("/vault/shares/{account}", response_model=AccountSharesResponse)
async def account_shares(account: str, vault: Vault = Depends(get_vault)):
    """Share balance and max-withdrawable assets for one account"""
    try:
        max_withdraw = vault.max_withdraw(account)
    except VaultError as e:
        _raise_http(e)

    return AccountSharesResponse(
        account=account,
        shares=vault.balance_of(account),
        max_withdraw=max_withdraw
    )
