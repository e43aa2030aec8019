import pytest

from craft_math.coins import ZERO, Coins, parse
from craft_math.payment import DECLINED, PaymentStrategy, parse_strategy, resolve
from craft_math.reagents import Reagent, ReagentUpdate


@pytest.fixture()
def herbs():
    # A single level 6 reagent worth exactly 50 gp.
    return [Reagent("herbs", level=6, quantity=1)]


def test_reagent_only_covers_cost_from_reagents(herbs) -> None:
    result = resolve("reagent-only", parse("30 gp"), herbs, parse("50 gp"))
    assert result.can_pay
    assert result.remove_currency == ZERO
    assert list(result.reagent_updates) == [ReagentUpdate("herbs", 0, ZERO)]


def test_currency_only_declines_when_short() -> None:
    result = resolve(PaymentStrategy.CURRENCY_ONLY, parse("30 gp"), [], parse("50 gp"))
    assert result == DECLINED
    assert result.remove_currency == ZERO
    assert list(result.reagent_updates) == []


def test_currency_only_takes_exact_cost(herbs) -> None:
    result = resolve("currency-only", parse("30 gp"), herbs, parse("20 gp"))
    assert result.can_pay
    assert result.remove_currency == parse("20 gp")
    assert list(result.reagent_updates) == []


def test_prefer_currency_tops_up_with_reagents(herbs) -> None:
    result = resolve("prefer-currency", parse("30 gp"), herbs, parse("50 gp"))
    assert result.can_pay
    assert result.remove_currency == parse("30 gp")
    assert list(result.reagent_updates) == [ReagentUpdate("herbs", 0, parse("30 gp"))]


def test_prefer_currency_declines_when_both_short(herbs) -> None:
    assert resolve("prefer-currency", parse("30 gp"), herbs, parse("81 gp")) == DECLINED


def test_prefer_reagent_uses_reagents_alone_when_enough(herbs) -> None:
    result = resolve("prefer-reagent", parse("30 gp"), herbs, parse("40 gp"))
    assert result.can_pay
    assert result.remove_currency == ZERO
    assert list(result.reagent_updates) == [ReagentUpdate("herbs", 0, parse("10 gp"))]


def test_prefer_reagent_drains_reagents_then_coins(herbs) -> None:
    result = resolve("prefer-reagent", parse("30 gp"), herbs, parse("80 gp"))
    assert result.can_pay
    assert result.remove_currency == parse("30 gp")
    assert list(result.reagent_updates) == [ReagentUpdate("herbs", 0, ZERO)]


def test_prefer_reagent_declines_without_partial_updates(herbs) -> None:
    result = resolve("prefer-reagent", parse("30 gp"), herbs, parse("90 gp"))
    assert result == DECLINED


def test_prefer_reagent_reads_a_one_shot_iterable_once() -> None:
    reagents = iter([Reagent("herbs", level=6, quantity=1)])
    result = resolve("prefer-reagent", parse("10 gp"), reagents, parse("60 gp"))
    assert result.can_pay
    assert result.remove_currency == parse("10 gp")


def test_free_needs_nothing() -> None:
    result = resolve("free", ZERO, [], parse("1000 gp"))
    assert result.can_pay
    assert result.remove_currency == ZERO
    assert list(result.reagent_updates) == []


@pytest.mark.parametrize("strategy", list(PaymentStrategy))
def test_zero_cost_is_always_affordable(strategy) -> None:
    result = resolve(strategy, ZERO, [], ZERO)
    assert result.can_pay
    assert result.remove_currency == ZERO


def test_negative_cost_rejected() -> None:
    with pytest.raises(ValueError):
        resolve("currency-only", parse("30 gp"), [], Coins(-1))


def test_unknown_strategy_rejected() -> None:
    with pytest.raises(ValueError):
        parse_strategy("barter")
    with pytest.raises(ValueError):
        resolve("barter", parse("30 gp"), [], parse("1 gp"))
