"""Lighter seven-day funding history."""

from monitor.history.aggregator import HistoryAggregator, build_history

__all__ = ["HistoryAggregator", "build_history"]
