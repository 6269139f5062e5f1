"""Financial summary package."""

from piggery.analytics.summary import (
    average_daily_feed_cost,
    chart_series,
    feed_unit_price,
    summarize,
)

__all__ = ["average_daily_feed_cost", "chart_series", "feed_unit_price", "summarize"]
