"""Shared money and chronology utilities."""

from riskledger.utils.chrono import Window, movement_sort_key, trade_sort_key, window_bounds
from riskledger.utils.money import percent_of, quantize, ratio_percent, to_money

__all__ = [
    "Window",
    "movement_sort_key",
    "trade_sort_key",
    "window_bounds",
    "percent_of",
    "quantize",
    "ratio_percent",
    "to_money",
]
