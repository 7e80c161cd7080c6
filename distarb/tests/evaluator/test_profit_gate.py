import random

import pytest

from distarb.common.models import ProfitCheckMode
from distarb.evaluator.gates import admit_profit, rejection_reason

ONE = 10**18


@pytest.mark.parametrize(
    "profit,bundle_fee,arb_fee,mode,expected",
    [
        (ONE, ONE // 10, ONE // 20, ProfitCheckMode.STRICT, True),
        (ONE // 20, ONE // 10, ONE // 20, ProfitCheckMode.STRICT, False),
        (ONE // 20, ONE // 10, ONE // 20, ProfitCheckMode.IGNORE_DISTRIBUTE_COST, True),
        (ONE // 20 - 1, ONE // 10, ONE // 20, ProfitCheckMode.IGNORE_DISTRIBUTE_COST, False),
        (-ONE, ONE, ONE, ProfitCheckMode.DISABLED, True),
        (ONE // 10, ONE // 10, 0, ProfitCheckMode.STRICT, True),
    ],
)
def test_admit_profit_cases(profit, bundle_fee, arb_fee, mode, expected):
    assert admit_profit(profit, bundle_fee, arb_fee, mode) is expected


def test_admit_profit_randomized():
    rng = random.Random(42)
    for _ in range(500):
        bundle_fee = rng.randint(0, 10**20)
        arb_fee = rng.randint(0, bundle_fee)
        profit = rng.choice([bundle_fee, arb_fee, rng.randint(-10**20, 10**21)])
        assert admit_profit(profit, bundle_fee, arb_fee, ProfitCheckMode.STRICT) is (profit >= bundle_fee)
        assert admit_profit(profit, bundle_fee, arb_fee, ProfitCheckMode.IGNORE_DISTRIBUTE_COST) is (profit >= arb_fee)
        assert admit_profit(profit, bundle_fee, arb_fee, ProfitCheckMode.DISABLED) is True


def test_integer_precision_beyond_float():
    fee = 10**30 + 1
    assert admit_profit(10**30, fee, 0, ProfitCheckMode.STRICT) is False
    assert admit_profit(fee, fee, 0, ProfitCheckMode.STRICT) is True


def test_mode_accepts_string_values():
    assert admit_profit(0, 1, 0, "ignore_distribute_cost") is True


def test_rejection_reason_names_the_fee():
    assert "arbitrage" in rejection_reason(ProfitCheckMode.IGNORE_DISTRIBUTE_COST)
    assert "bundle" in rejection_reason(ProfitCheckMode.STRICT)
