"""
test_curve_engine.py

Unit tests for the dual-reserve constant-product engine (AMM).
"""

import pytest

from launchpad.core.constants import U64_MAX
from launchpad.core.errors import ArithmeticOverflow, Depleted, InsufficientLiquidity
from launchpad.services.curve_engine import AMM

pytestmark = pytest.mark.unit

VIRTUAL_SOL = 30_000_000_000
VIRTUAL_TOKEN = 1_073_000_000_000_000
REAL_TOKEN = 793_100_000_000_000


def _default_amm(**overrides) -> AMM:
    params = dict(
        virtual_sol_reserves=VIRTUAL_SOL,
        virtual_token_reserves=VIRTUAL_TOKEN,
        real_sol_reserves=0,
        real_token_reserves=REAL_TOKEN,
        initial_virtual_token_reserves=VIRTUAL_TOKEN,
    )
    params.update(overrides)
    return AMM(**params)


def _small_amm(**overrides) -> AMM:
    params = dict(
        virtual_sol_reserves=1_000_000,
        virtual_token_reserves=2_000_000,
        real_sol_reserves=0,
        real_token_reserves=1_000_000,
        initial_virtual_token_reserves=2_000_000,
    )
    params.update(overrides)
    return AMM(**params)


# ===========================================================================
# Pricing
# ===========================================================================


def test_buy_price_reference_value():
    """ceil(k / (vt - 1e9)) - vs for the default launch parameters"""
    assert _default_amm().get_buy_price(1_000_000_000) == 27_960


def test_buy_price_rounds_up():
    # 2e12 / 1.9e6 = 1_052_631.57..., charged as 1_052_632
    assert _small_amm().get_buy_price(100_000) == 52_632


def test_sell_price_rounds_down():
    amm = _small_amm(
        virtual_sol_reserves=1_052_632,
        virtual_token_reserves=1_900_000,
        real_sol_reserves=52_632,
    )
    # floor(2_000_000_800_000 / 2_000_000) = 1_000_000
    assert amm.get_sell_price(100_000) == 52_632


def test_zero_buy_costs_nothing():
    assert _small_amm().get_buy_price(0) == 0


def test_token_price_in_lamports_per_whole_token():
    # 30e9 * 1e6 / 1.073e15
    assert _default_amm().get_token_price() == 27


def test_pricing_does_not_mutate():
    amm = _small_amm()
    before = amm.reserves()
    amm.get_buy_price(100_000)
    assert amm.reserves() == before


# ===========================================================================
# apply_buy / apply_sell
# ===========================================================================


def test_apply_buy_moves_all_four_reserves():
    amm = _small_amm()
    result = amm.apply_buy(100_000)

    assert result.token_amount == 100_000
    assert result.sol_amount == 52_632
    assert amm.reserves() == {
        "virtual_sol_reserves": 1_052_632,
        "virtual_token_reserves": 1_900_000,
        "real_sol_reserves": 52_632,
        "real_token_reserves": 900_000,
    }
    assert amm.token_balance == 900_000


def test_buy_then_inverse_sell_restores_reference_product():
    amm = _default_amm()
    k_before = amm.product()

    bought = amm.apply_buy(1_000_000_000)
    sold = amm.apply_sell(bought.token_amount)

    assert sold.sol_amount == bought.sol_amount == 27_960
    assert amm.product() == k_before


@pytest.mark.parametrize("token_amount", [1, 7, 99_999, 333_333, 999_999])
def test_buy_then_inverse_sell_never_decreases_product(token_amount):
    amm = _small_amm()
    k_before = amm.product()

    bought = amm.apply_buy(token_amount)
    sold = amm.apply_sell(bought.token_amount)

    assert sold.sol_amount <= bought.sol_amount
    assert amm.product() >= k_before


def test_real_reserves_stay_below_virtual_across_trades():
    amm = _small_amm()
    for amount in (250_000, 100_000, 300_000):
        amm.apply_buy(amount)
        assert amm.real_token_reserves <= amm.virtual_token_reserves
    for amount in (200_000, 50_000):
        amm.apply_sell(amount)
        assert amm.real_token_reserves <= amm.virtual_token_reserves


def test_buy_of_all_real_tokens_empties_real_reserves():
    amm = _small_amm()
    result = amm.apply_buy(1_000_000)

    assert result.sol_amount == 1_000_000
    assert amm.real_token_reserves == 0
    assert amm.virtual_token_reserves == 1_000_000


def test_buy_is_clamped_to_custodied_tokens():
    amm = _small_amm(token_balance=400_000)
    result = amm.apply_buy(600_000)

    assert result.token_amount == 400_000
    assert amm.token_balance == 0
    assert amm.real_token_reserves == 600_000


# ===========================================================================
# Failures
# ===========================================================================


def test_buy_draining_virtual_reserves_is_depleted():
    amm = _small_amm(virtual_token_reserves=1_000_000, real_token_reserves=1_000_000)
    before = amm.reserves()
    with pytest.raises(Depleted):
        amm.apply_buy(1_000_000)
    assert amm.reserves() == before


def test_sell_beyond_real_sol_is_insufficient_liquidity():
    amm = _small_amm()
    with pytest.raises(InsufficientLiquidity):
        amm.apply_sell(100_000)
    assert amm.real_sol_reserves == 0


def test_buy_overflowing_u64_reserves_fails_without_mutation():
    amm = _small_amm(
        virtual_sol_reserves=U64_MAX,
        virtual_token_reserves=U64_MAX,
        real_token_reserves=10,
    )
    before = amm.reserves()
    with pytest.raises(ArithmeticOverflow):
        amm.apply_buy(1)
    assert amm.reserves() == before
    assert amm.token_balance == 10


def test_negative_reserves_are_rejected():
    with pytest.raises(ArithmeticOverflow):
        _small_amm(real_sol_reserves=-1)
