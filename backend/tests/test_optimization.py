"""Rule-based optimisation suggestions."""

from __future__ import annotations

import pytest

from aptomizer.services import optimization
from aptomizer.services.optimization import best_by_apy, LIQUID_STAKING, rank_opportunities
from aptomizer.services.portfolio import Asset, Strategy


def _asset(symbol: str, value: float) -> Asset:
    return Asset(name=symbol, symbol=symbol, balance=value, value=value, price_usd=1.0)


def test_best_by_apy_picks_highest():
    assert best_by_apy(LIQUID_STAKING).name == "Tortuga Finance"
    assert best_by_apy([]) is None


def test_moderate_profile_gets_staking_lending_and_liquidity():
    assets = [_asset("APT", 100), _asset("USDC", 200)]
    opportunities = rank_opportunities(assets, [], 5)

    assert [o.title for o in opportunities] == [
        "APT-USDC Liquidity Pool",
        "USDC Lending",
        "Tortuga Finance Liquid Staking",
    ]
    liquidity, lending, staking = opportunities
    assert liquidity.yearly_gain == pytest.approx(16.8)
    assert liquidity.protocol == "pancakeLP"
    assert lending.yearly_gain == pytest.approx(12.4)
    assert lending.potential_gain == "+$12.40/year"
    assert staking.yearly_gain == pytest.approx(5.46)


def test_aggressive_profile_is_capped_at_three():
    assets = [_asset("USDC", 200), _asset("APT", 100)]
    opportunities = rank_opportunities(assets, [], 9)

    assert len(opportunities) == 3
    assert opportunities[0].title == "Merkle Yield Farming"
    assert opportunities[0].yearly_gain == pytest.approx(25.92)
    assert [o.protocol for o in opportunities[1:]] == ["thalaLP", "ariesLend"]


def test_existing_staking_strategy_reduces_gain_below_threshold():
    assets = [_asset("APT", 100)]
    strategies = [Strategy(name="Staking", protocol="Amnis", balance=10, value=100, apy=7.0, health="Healthy")]
    assert rank_opportunities(assets, strategies, 5) == []


def test_missing_tolerance_uses_default_and_small_wallets_get_nothing():
    assert rank_opportunities([_asset("APT", 5)], [], None) == []
    assert rank_opportunities([], [], None) == []


def _fixed_gain(monkeypatch, gain: float) -> None:
    monkeypatch.setattr(optimization, "yearly_gain", lambda value, current, new: gain)


@pytest.mark.parametrize(("gain", "found"), [(5.0, False), (5.01, True)])
def test_staking_gain_must_exceed_five_dollars(monkeypatch, gain, found):
    _fixed_gain(monkeypatch, gain)
    assert (optimization.staking_opportunity([_asset("APT", 100)], [], 5) is not None) is found


@pytest.mark.parametrize(("value", "found"), [(10.0, False), (10.01, True)])
def test_staking_needs_more_than_ten_dollars_of_apt(monkeypatch, value, found):
    _fixed_gain(monkeypatch, 50.0)
    assert (optimization.staking_opportunity([_asset("APT", value)], [], 5) is not None) is found


@pytest.mark.parametrize(("gain", "found"), [(3.0, False), (3.01, True)])
def test_lending_gain_must_exceed_three_dollars(monkeypatch, gain, found):
    _fixed_gain(monkeypatch, gain)
    assert (optimization.lending_opportunity([_asset("USDC", 100)], [], 5) is not None) is found


@pytest.mark.parametrize(("value", "found"), [(5.0, False), (5.01, True)])
def test_lending_needs_more_than_five_dollars_of_stablecoins(monkeypatch, value, found):
    _fixed_gain(monkeypatch, 50.0)
    assets = [_asset("USDC", value / 2), _asset("DAI", value / 2)]
    assert (optimization.lending_opportunity(assets, [], 5) is not None) is found


@pytest.mark.parametrize(("gain", "found"), [(10.0, False), (10.01, True)])
def test_liquidity_gain_must_exceed_ten_dollars(monkeypatch, gain, found):
    _fixed_gain(monkeypatch, gain)
    assets = [_asset("APT", 100), _asset("USDC", 100)]
    assert (optimization.liquidity_opportunity(assets, [], 5) is not None) is found


@pytest.mark.parametrize(
    ("tolerance", "second_value", "found"),
    [(3, 100.0, False), (4, 100.0, True), (5, 20.0, False), (5, 20.01, True)],
)
def test_liquidity_tolerance_and_asset_size_gates(monkeypatch, tolerance, second_value, found):
    _fixed_gain(monkeypatch, 50.0)
    assets = [_asset("APT", 100), _asset("USDC", second_value)]
    assert (optimization.liquidity_opportunity(assets, [], tolerance) is not None) is found


@pytest.mark.parametrize(
    ("tolerance", "value", "found"),
    [(7, 100.0, False), (8, 100.0, True), (8, 50.0, False), (8, 50.01, True)],
)
def test_farming_tolerance_and_value_gates(tolerance, value, found):
    opportunity = optimization.farming_opportunity([_asset("APT", value)], tolerance)
    assert (opportunity is not None) is found
    if found:
        assert opportunity.protocol == "merkleFarm"
