import unittest
from datetime import datetime, timezone

from starshot.services.trades.trading_data import (
    UpstreamShapeError,
    build_trading_data,
    extract_bot_summary,
    extract_status_records,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

DAY_MS = 86_400_000
JAN_1_MS = 1704067200000


def _closed(trade_id, profit, day):
    return {
        "trade_id": trade_id,
        "pair": "BTC/USDT",
        "is_short": False,
        "open_date_ts": JAN_1_MS + (day - 1) * DAY_MS,
        "close_date_ts": JAN_1_MS + day * DAY_MS,
        "profit_abs": profit,
        "profit_ratio": profit / 1000.0,
        "open_rate": 100.0,
        "close_rate": 101.0,
        "amount": 1.0,
    }


def _open(trade_id, day, profit=None):
    return {
        "trade_id": trade_id,
        "pair": "ETH/USDT",
        "is_short": True,
        "open_date_ts": JAN_1_MS + day * DAY_MS,
        "close_date_ts": None,
        "profit_abs": profit,
        "open_rate": 2000.0,
        "amount": 0.5,
    }


class TradingDataTests(unittest.TestCase):
    def test_full_payload(self):
        trades_payload = {"trades": [_closed(1, 100.0, 1), _closed(2, -40.0, 2), _closed(3, 25.0, 3), _open(4, 4)]}
        status_payload = [_open(4, 4, profit=3.5), _open(5, 5)]

        data = build_trading_data(trades_payload, status_payload, now=NOW).to_dict()

        self.assertEqual(data["totalTrades"], 3)
        self.assertEqual(data["winningTrades"], 2)
        self.assertEqual(data["losingTrades"], 1)
        self.assertAlmostEqual(data["pnl"], 85.0)
        self.assertEqual(data["biggestWin"], 100.0)
        self.assertAlmostEqual(data["percentageProfit"], 85.0 / 300.0 * 100.0)
        self.assertAlmostEqual(data["profitRatio"], 85.0 / 300.0)
        self.assertEqual(data["totalBalance"], 85.0)

        # status copy of trade 4 wins over the /trades copy
        self.assertEqual(len(data["openTrades"]), 2)
        self.assertEqual([t["profitAbs"] for t in data["openTrades"]], [None, 3.5])
        self.assertEqual(data["openTrades"][0]["type"], "SELL")

        self.assertEqual([t["profitAbs"] for t in data["closedTrades"]], [25.0, -40.0, 100.0])
        self.assertEqual([p["name"] for p in data["tradeHistoryForCharts"]], ["Trade 1", "Trade 2", "Trade 3"])
        self.assertEqual([p["cumulativeProfit"] for p in data["cumulativeProfitHistory"]], [100.0, 60.0, 85.0])

    def test_open_trades_source_selection(self):
        trades_payload = {"trades": [_open(1, 1)]}
        status_payload = {"trades": [_open(2, 2)]}

        only_trades = build_trading_data(trades_payload, status_payload, open_trades_source="trades", now=NOW)
        only_status = build_trading_data(trades_payload, status_payload, open_trades_source="status", now=NOW)
        merged = build_trading_data(trades_payload, status_payload, open_trades_source="merged", now=NOW)

        self.assertEqual([t.trade_id for t in only_trades.open_trades], ["1"])
        self.assertEqual([t.trade_id for t in only_status.open_trades], ["2"])
        self.assertEqual([t.trade_id for t in merged.open_trades], ["2", "1"])

    def test_trade_closed_upstream_is_not_listed_as_open(self):
        data = build_trading_data({"trades": [_closed(9, 10.0, 1)]}, [_open(9, 1)], now=NOW)

        self.assertEqual(data.open_trades, [])
        self.assertEqual(len(data.closed_trades), 1)

    def test_empty_defaults_give_empty_payload(self):
        data = build_trading_data({"trades": []}, {}, now=NOW).to_dict()

        self.assertEqual(data["openTrades"], [])
        self.assertEqual(data["closedTrades"], [])
        self.assertEqual(data["tradeHistoryForCharts"], [])
        self.assertEqual(data["cumulativeProfitHistory"], [])
        self.assertEqual(data["totalTrades"], 0)
        self.assertEqual(data["winRate"], 0.0)

    def test_starting_balance_from_bot_summary(self):
        status = {"bots": {"status": [{"starting_balance": 1000, "total_profit": 5}]}}
        data = build_trading_data({"trades": [_closed(1, 50.0, 1)]}, status, now=NOW)

        self.assertEqual(data.total_balance, 1050.0)

    def test_start_point_flag(self):
        data = build_trading_data({"trades": [_closed(1, 50.0, 1)]}, {}, include_start_point=True, now=NOW)

        self.assertEqual([p.name for p in data.cumulative_history], ["Start", "Trade 1"])

    def test_non_array_trades_is_shape_error(self):
        with self.assertRaises(UpstreamShapeError):
            build_trading_data({"trades": {"1": {}}}, {}, now=NOW)
        with self.assertRaises(UpstreamShapeError):
            build_trading_data("nope", {}, now=NOW)

    def test_non_array_status_trades_is_shape_error(self):
        with self.assertRaises(UpstreamShapeError):
            build_trading_data({"trades": []}, {"trades": "oops"}, now=NOW)

    def test_unknown_open_trades_source_rejected(self):
        with self.assertRaises(ValueError):
            build_trading_data({"trades": []}, {}, open_trades_source="both", now=NOW)


class StatusExtractionTests(unittest.TestCase):
    def test_status_orders_become_single_order_records(self):
        status = {
            "orders": [
                {"pair": "SOL/USDT", "ft_trade_id": 11, "ft_order_side": "buy",
                 "order_timestamp": JAN_1_MS, "safe_price": 150.0, "amount": 3.0, "is_open": False},
            ]
        }
        records = extract_status_records(status)
        self.assertEqual(records[0]["pair"], "SOL/USDT")
        self.assertEqual(records[0]["trade_id"], 11)

        data = build_trading_data({"trades": []}, status, now=NOW)
        trade = data.open_trades[0]
        self.assertEqual(trade.asset, "SOL/USDT")
        self.assertEqual(trade.open_rate, 150.0)
        self.assertEqual(trade.amount, 3.0)

    def test_status_orders_of_one_trade_are_grouped(self):
        status = {
            "orders": [
                {"pair": "SOL/USDT", "ft_trade_id": 11, "ft_order_side": "sell",
                 "order_timestamp": JAN_1_MS + DAY_MS, "safe_price": 160.0, "amount": 3.0, "is_open": False},
                {"pair": "SOL/USDT", "ft_trade_id": 11, "ft_order_side": "buy",
                 "order_timestamp": JAN_1_MS, "safe_price": 150.0, "amount": 3.0, "is_open": False},
                {"pair": "ADA/USDT", "ft_trade_id": 12, "ft_order_side": "buy",
                 "order_timestamp": JAN_1_MS, "safe_price": 0.5, "amount": 100.0, "is_open": False},
            ]
        }
        records = extract_status_records(status)
        self.assertEqual([r["trade_id"] for r in records], [11, 12])
        self.assertEqual([o["ft_order_side"] for o in records[0]["orders"]], ["buy", "sell"])

        data = build_trading_data({"trades": []}, status, now=NOW)

        self.assertEqual([t.trade_id for t in data.open_trades], ["12"])
        self.assertEqual(len(data.closed_trades), 1)
        exited = data.closed_trades[0]
        self.assertEqual(exited.trade_id, "11")
        self.assertEqual(exited.side, "BUY")
        self.assertEqual(exited.open_rate, 150.0)
        self.assertEqual(exited.close_rate, 160.0)
        self.assertEqual(data.stats.total_trades, 1)

    def test_summary_only_status_has_no_records(self):
        status = {"bots": {"status": [{"starting_balance": 10}]}}
        self.assertEqual(extract_status_records(status), [])
        self.assertEqual(extract_bot_summary(status), {"starting_balance": 10})

    def test_summary_missing(self):
        self.assertEqual(extract_bot_summary([]), {})
        self.assertEqual(extract_bot_summary({"bots": {"status": []}}), {})


if __name__ == "__main__":
    unittest.main()
