"""Utility functions for ledgerly."""

from ledgerly.utils.date_parser import (
    parse_date,
    add_months,
    date_for_day,
    days_in_month,
    month_bounds,
)
from ledgerly.utils.amount_parser import parse_amount, round_money

__all__ = [
    "parse_date",
    "add_months",
    "date_for_day",
    "days_in_month",
    "month_bounds",
    "parse_amount",
    "round_money",
]
