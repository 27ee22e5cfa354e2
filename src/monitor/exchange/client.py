"""Abstract exchange client interface.

Defines the contract for every funding-rate source. Pollers and the board
depend only on this interface, keeping venue-specific endpoints and payload
shapes isolated in the concrete implementations.
"""

from abc import ABC, abstractmethod

from monitor.models import ExchangeId

RatesBySource = dict[ExchangeId, dict[str, float]]


class ExchangeClient(ABC):
    """Abstract base class for funding-rate sources."""

    #: Board slots this client fills. Most clients feed exactly one.
    exchanges: tuple[ExchangeId, ...] = ()

    #: Latest per-item failure from a sweep that still returned data.
    partial_error: str | None = None

    @property
    def name(self) -> str:
        return "/".join(e.value for e in self.exchanges)

    @abstractmethod
    async def connect(self) -> None:
        """Open sessions and load any metadata needed before fetching."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
        ...

    @abstractmethod
    async def fetch_funding_rates(self) -> RatesBySource:
        """Fetch current funding rates.

        Returns exchange -> {canonical symbol: 8h-equivalent rate}, one entry
        per slot in `exchanges`. Entries that fail to parse are dropped.

        Raises:
            SourceFetchError: When the feed cannot be fetched at all.
        """
        ...
