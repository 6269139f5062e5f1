"""
Financial Summary

DESIGN DECISION: summarize() is a pure function of the snapshot. It keeps
no state and touches no storage, so the dashboard can call it on every
render and tests can call it on hand-built snapshots.

Every ratio guards its denominator and returns 0.0 instead of NaN/inf.
"""

from piggery.models.records import AppData, FarmStats, FeedRecord, PigStatus


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def average_daily_feed_cost(feed_records, total_feed_cost: float) -> float:
    """
    Feed spend per day across the purchase history.

    Below two purchases there is no span to divide by, so the answer is 0.
    Otherwise the span between the earliest and latest purchase date is
    used, with a floor of one day.
    """
    if len(feed_records) < 2:
        return 0.0
    ordered = sorted(feed_records, key=lambda r: r.date_purchased)
    span_days = (ordered[-1].date_purchased - ordered[0].date_purchased).days
    return total_feed_cost / max(1, span_days)


def summarize(snapshot: AppData) -> FarmStats:
    """Compute dashboard statistics from a full snapshot."""
    pigs = snapshot.pigs
    total_pigs = len(pigs)
    raising_count = sum(1 for p in pigs if p.status == PigStatus.RAISING)
    sold_count = sum(1 for p in pigs if p.status == PigStatus.SOLD)
    deceased_count = sum(1 for p in pigs if p.status == PigStatus.DECEASED)

    total_feed_cost = sum(r.cost for r in snapshot.feed_records)
    total_purchase_cost = sum(p.purchase_cost or 0 for p in pigs)
    total_misc_cost = sum(r.cost for r in snapshot.misc_records)
    total_revenue = sum(s.total_revenue for s in snapshot.sale_records)

    total_expenses = total_feed_cost + total_purchase_cost + total_misc_cost
    net_profit = total_revenue - total_expenses

    return FarmStats(
        total_pigs=total_pigs,
        raising_count=raising_count,
        sold_count=sold_count,
        deceased_count=deceased_count,
        total_feed_cost=total_feed_cost,
        total_purchase_cost=total_purchase_cost,
        total_misc_cost=total_misc_cost,
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        net_profit=net_profit,
        avg_daily_feed_cost=average_daily_feed_cost(snapshot.feed_records, total_feed_cost),
        sell_through_rate=_ratio(sold_count, total_pigs) * 100,
        profit_margin=_ratio(net_profit, total_revenue) * 100,
    )


def feed_unit_price(record: FeedRecord) -> float:
    """Price per kg of a feed purchase (0 when no quantity was entered)."""
    return _ratio(record.cost, record.amount_kg)


def chart_series(stats: FarmStats) -> list[dict]:
    """The Expenses / Revenue / Net Profit bars shown on the dashboard."""
    return [
        {"name": "Expenses", "value": stats.total_expenses},
        {"name": "Revenue", "value": stats.total_revenue},
        {"name": "Net Profit", "value": stats.net_profit},
    ]
