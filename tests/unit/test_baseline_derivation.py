import pytest

from holdings_dashboard.services.baseline_service import BaselineInput, BaselineService, derive_baseline
from holdings_dashboard.utils.validation import InvalidInputError


def test_known_shares_spread_the_balance() -> None:
    result = derive_baseline(BaselineInput(account_type="IRA", account_value=1000, known_shares=10))

    assert result.total_shares == 10
    assert result.avg_cost_per_share == pytest.approx(100.0)
    assert result.price_paid_used_as_proxy is False


def test_live_price_stands_in_for_purchase_price() -> None:
    result = derive_baseline(
        BaselineInput(account_type="IRA", account_value=1000, ticker_symbol="VTI", live_price=250)
    )

    assert result.total_shares == pytest.approx(4.0)
    assert result.avg_cost_per_share == 250
    assert result.price_paid_used_as_proxy is True


def test_inferred_shares_are_rounded_to_six_places() -> None:
    result = derive_baseline(
        BaselineInput(account_type="IRA", account_value=1000, ticker_symbol="VTI", live_price=3)
    )

    assert result.total_shares == 333.333333


def test_no_shares_and_no_price_leaves_a_value_only_holding() -> None:
    result = derive_baseline(BaselineInput(account_type="401k", account_value="2500", ticker_symbol="VTI"))

    assert result.account_value == 2500
    assert result.total_shares is None
    assert result.avg_cost_per_share is None
    assert result.price_paid_used_as_proxy is False


def test_zero_live_price_is_ignored() -> None:
    result = derive_baseline(
        BaselineInput(account_type="IRA", account_value=1000, ticker_symbol="VTI", live_price=0)
    )

    assert result.total_shares is None
    assert result.price_paid_used_as_proxy is False


@pytest.mark.parametrize("value", [-5, 0, "abc", None, ""])
def test_account_value_must_be_positive(value) -> None:
    with pytest.raises(InvalidInputError):
        derive_baseline(BaselineInput(account_type="IRA", account_value=value))


def test_known_shares_must_be_positive_when_given() -> None:
    with pytest.raises(InvalidInputError):
        derive_baseline(BaselineInput(account_type="IRA", account_value=1000, known_shares=0))


class _StubPrices:
    def __init__(self, price=None, fail=False):
        self.price = price
        self.fail = fail
        self.calls: list[str] = []

    def get_price(self, symbol):
        self.calls.append(symbol)
        if self.fail:
            raise RuntimeError("quote service down")
        return self.price


def test_prepare_fetches_price_only_without_known_shares() -> None:
    prices = _StubPrices(price=200.0)
    service = BaselineService(price_service=prices)

    _, derived = service.prepare(BaselineInput(account_type="IRA", account_value=1000, ticker_symbol=" vti "))
    assert prices.calls == ["VTI"]
    assert derived.total_shares == pytest.approx(5.0)
    assert derived.price_paid_used_as_proxy is True

    service.prepare(BaselineInput(account_type="IRA", account_value=1000, known_shares=4, ticker_symbol="VTI"))
    assert prices.calls == ["VTI"]


def test_prepare_treats_quote_failure_as_no_price() -> None:
    service = BaselineService(price_service=_StubPrices(fail=True))

    clean, derived = service.prepare(BaselineInput(account_type="IRA", account_value=1000, ticker_symbol="VTI"))

    assert clean.ticker_symbol == "VTI"
    assert derived.total_shares is None
    assert derived.price_paid_used_as_proxy is False


def test_prepare_requires_account_type() -> None:
    service = BaselineService(price_service=_StubPrices())

    with pytest.raises(InvalidInputError):
        service.prepare(BaselineInput(account_type="  ", account_value=1000))


def test_contribution_needs_amount_and_frequency() -> None:
    service = BaselineService(price_service=_StubPrices())

    clean, _ = service.prepare(
        BaselineInput(account_type="IRA", account_value=1000, has_contrib=True, contrib_amount="200")
    )
    assert clean.has_contrib is False

    clean, _ = service.prepare(
        BaselineInput(
            account_type="IRA",
            account_value=1000,
            has_contrib=True,
            contrib_amount="200",
            contrib_frequency="monthly",
        )
    )
    assert clean.has_contrib is True
    assert clean.contrib_amount == 200.0
