"""Market data layer -- rate normalization, polling, joining and spread ranking."""

from monitor.market_data.funding_join import FundingJoinEngine
from monitor.market_data.funding_monitor import SourcePoller, SourceState
from monitor.market_data.spread_ranker import SpreadRanker

__all__ = ["FundingJoinEngine", "SourcePoller", "SourceState", "SpreadRanker"]
