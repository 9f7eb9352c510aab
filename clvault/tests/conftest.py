"""
공용 pytest fixture
"""

import pytest

from .mocks import ONE, Market


@pytest.fixture
def market():
    """BASE(token0, $2000) / USDC(token1, $1) 시장과 연결된 vault"""
    return Market()


@pytest.fixture
def vault(market):
    return market.vault


@pytest.fixture
def funded(market):
    """alice, bob, carol에게 각각 100 BASE 지급"""
    for account in ("0xalice", "0xbob", "0xcarol"):
        market.fund(account, 100 * ONE)
    return market
