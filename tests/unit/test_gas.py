"""
Unit tests for gas cost analysis.
"""

import pytest
from datetime import datetime, timezone

from oracle_monitor.analytics.gas import analyze_gas_costs, calculate_cost
from oracle_monitor.models import UpdateTransaction


class TestCalculateCost:

    @pytest.mark.unit
    def test_cost_in_native_and_usd(self, now):
        tx = UpdateTransaction("ETH/USD", "ethereum", now, 100_000, 20.0, 3000.0)
        cost = calculate_cost(tx)
        assert cost["cost_native"] == pytest.approx(0.002)
        assert cost["cost_usd"] == pytest.approx(6.0)

    @pytest.mark.unit
    def test_negative_gas_rejected(self, now):
        tx = UpdateTransaction("ETH/USD", "ethereum", now, -1, 20.0, 3000.0)
        with pytest.raises(ValueError):
            calculate_cost(tx)


class TestAnalyzeGasCosts:

    @pytest.mark.unit
    @pytest.mark.smoke
    def test_totals(self, update_transactions):
        result = analyze_gas_costs(update_transactions)

        assert result["total_transactions"] == 4
        assert result["total_gas_used"] == 750_000
        assert result["total_cost_native"] == pytest.approx(0.00555)
        assert result["total_cost_usd"] == pytest.approx(16.65)

    @pytest.mark.unit
    def test_by_feed_sorted_by_cost(self, update_transactions):
        by_feed = analyze_gas_costs(update_transactions)["by_feed"]

        assert [(f["feed_name"], f["chain"]) for f in by_feed] == [
            ("ETH/USD", "ethereum"),
            ("BTC/USD", "ethereum"),
            ("ETH/USD", "arbitrum"),
        ]
        top = by_feed[0]
        assert top["transaction_count"] == 2
        assert top["total_gas_used"] == 200_000
        assert top["avg_gas_per_tx"] == pytest.approx(100_000)
        assert top["total_cost_usd"] == pytest.approx(15.0)
        assert isinstance(top["transaction_count"], int)

    @pytest.mark.unit
    def test_by_chain(self, update_transactions):
        by_chain = analyze_gas_costs(update_transactions)["by_chain"]

        assert by_chain[0]["chain"] == "ethereum"
        assert by_chain[0]["feed_count"] == 2
        assert by_chain[0]["transaction_count"] == 3
        assert by_chain[1]["chain"] == "arbitrum"
        assert by_chain[1]["total_cost_usd"] == pytest.approx(0.15)

    @pytest.mark.unit
    def test_hourly_trend_skips_empty_buckets(self, update_transactions):
        trend = analyze_gas_costs(update_transactions)["trend"]

        assert [p.timestamp for p in trend] == [
            datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc),
            datetime(2024, 6, 1, 11, 0, tzinfo=timezone.utc),
        ]
        assert [p.transaction_count for p in trend] == [2, 2]
        assert trend[0].gas_used == 200_000
        assert trend[0].cost_usd == pytest.approx(15.0)

    @pytest.mark.unit
    def test_chain_filter_is_case_insensitive(self, update_transactions):
        result = analyze_gas_costs(update_transactions, chain="Arbitrum")
        assert result["total_transactions"] == 1
        assert result["by_chain"][0]["chain"] == "arbitrum"

    @pytest.mark.unit
    def test_dapi_filter_is_substring(self, update_transactions):
        result = analyze_gas_costs(update_transactions, dapi="btc")
        assert result["total_transactions"] == 1
        assert result["by_feed"][0]["feed_name"] == "BTC/USD"

    @pytest.mark.unit
    def test_filter_without_matches(self, update_transactions):
        result = analyze_gas_costs(update_transactions, chain="polygon")
        assert result["total_transactions"] == 0
        assert result["by_feed"] == []
        assert result["trend"] == []

    @pytest.mark.unit
    def test_no_transactions(self):
        assert analyze_gas_costs([])["total_cost_usd"] == 0.0
