import pytest

from portfolio_tracker.utils.valuation import asset_cost, asset_value, change_percent, effective_price


class TestValuation:
    def test_uses_current_price_when_known(self, make_asset):
        asset = make_asset(quantity=4, purchase_price=10, current_price=15)

        assert effective_price(asset) == 15
        assert asset_value(asset) == 60
        assert asset_cost(asset) == 40
        assert change_percent(asset) == pytest.approx(50.0)

    @pytest.mark.parametrize("current_price", [None, 0, 0.0])
    def test_missing_or_zero_price_falls_back_to_purchase_price(self, make_asset, current_price):
        asset = make_asset(quantity=3, purchase_price=20, current_price=current_price)

        assert asset_value(asset) == 60
        assert change_percent(asset) == 0.0

    def test_zero_cost_basis_has_no_change(self, make_asset):
        asset = make_asset(quantity=5, purchase_price=0, current_price=10)

        assert asset_value(asset) == 50
        assert change_percent(asset) == 0.0
