"""edgeX funding source: contract metadata plus per-contract latest funding.

edgeX funds every 4 hours (fundingRateIntervalMin = 240). The forecast rate
for the running period is preferred over the last settled rate.

Only contracts that are tradeable, displayed and open-positionable are
queried; metadata is refreshed at most once per metadata interval.
"""

import time
from dataclasses import dataclass
from typing import Any

from monitor.exceptions import SourceFetchError
from monitor.exchange.client import ExchangeClient, RatesBySource
from monitor.exchange.http import JsonHttpClient
from monitor.exchange.sweep import sweep
from monitor.logging import get_logger
from monitor.market_data.normalizer import canonical_symbol, normalize_rate, parse_number
from monitor.models import ExchangeId

logger = get_logger(__name__)

EDGEX_METADATA_URL = "https://pro.edgex.exchange/api/v1/public/meta/getMetaData"
EDGEX_FUNDING_URL = "https://pro.edgex.exchange/api/v1/public/funding/getLatestFundingRate"

DEFAULT_INTERVAL_MIN = 240


@dataclass(frozen=True)
class EdgexContract:
    """An eligible edgeX perpetual contract."""

    contract_id: str
    contract_name: str
    interval_min: float = DEFAULT_INTERVAL_MIN

    @property
    def symbol(self) -> str:
        return canonical_symbol(self.contract_name)


def parse_edgex_contracts(payload: Any) -> list[EdgexContract]:
    """Return contracts with enableTrade, enableDisplay and enableOpenPosition.

    Raises:
        SourceFetchError: If the payload has no contractList.
    """
    data = payload.get("data") if isinstance(payload, dict) else None
    contract_list = data.get("contractList") if isinstance(data, dict) else None
    if not isinstance(contract_list, list):
        raise SourceFetchError("edgeX metadata response missing contractList")

    contracts: list[EdgexContract] = []
    for item in contract_list:
        if not isinstance(item, dict):
            continue
        if not (item.get("enableTrade") and item.get("enableDisplay") and item.get("enableOpenPosition")):
            continue
        contract_id = item.get("contractId")
        contract_name = item.get("contractName")
        if not contract_id or not contract_name:
            continue
        interval = parse_number(item.get("fundingRateIntervalMin"))
        contracts.append(
            EdgexContract(
                contract_id=str(contract_id),
                contract_name=str(contract_name),
                interval_min=interval if interval and interval > 0 else DEFAULT_INTERVAL_MIN,
            )
        )
    return contracts


def parse_edgex_point(point: Any, default_interval_min: float = DEFAULT_INTERVAL_MIN) -> float | None:
    """Return the 8h-equivalent rate from a latest-funding point."""
    if not isinstance(point, dict):
        return None
    raw = parse_number(point.get("forecastFundingRate"))
    if raw is None:
        raw = parse_number(point.get("fundingRate"))
    if raw is None:
        return None
    interval_min = parse_number(point.get("fundingRateIntervalMin"))
    if interval_min is None or interval_min <= 0:
        interval_min = default_interval_min
    return normalize_rate(raw, interval_min / 60)


class EdgexClient(ExchangeClient):
    """edgeX REST client with sequential per-contract funding sweeps.

    Rates from earlier sweeps are kept when a contract fails, so a flaky
    request never blanks a previously known rate.
    """

    exchanges = (ExchangeId.EDGEX,)

    def __init__(
        self,
        timeout: float = 10.0,
        fetch_gap: float = 0.5,
        metadata_interval: float = 3600.0,
    ) -> None:
        self._http = JsonHttpClient("edgeX", timeout=timeout)
        self._fetch_gap = fetch_gap
        self._metadata_interval = metadata_interval
        self._contracts: list[EdgexContract] = []
        self._metadata_loaded_at = 0.0
        self._rates_by_contract: dict[str, float] = {}
        self.metadata_error: str | None = None

    @property
    def contracts(self) -> list[EdgexContract]:
        return list(self._contracts)

    def contracts_by_symbol(self) -> dict[str, tuple[str, str]]:
        """Map canonical symbol -> (contract_id, contract_name) for row annotation."""
        return {c.symbol: (c.contract_id, c.contract_name) for c in self._contracts}

    async def connect(self) -> None:
        try:
            await self.refresh_metadata()
        except SourceFetchError as e:
            # Retried on the next sweep
            logger.warning("edgex_metadata_unavailable", error=str(e))

    async def close(self) -> None:
        await self._http.close()

    async def refresh_metadata(self) -> list[EdgexContract]:
        """Reload eligible contracts. Keeps the previous list on failure."""
        try:
            payload = await self._http.get_json(EDGEX_METADATA_URL, "metadata")
            contracts = parse_edgex_contracts(payload)
        except SourceFetchError as e:
            self.metadata_error = str(e)
            raise
        self._contracts = contracts
        self._metadata_loaded_at = time.monotonic()
        self.metadata_error = None
        logger.info("edgex_metadata_loaded", contracts=len(contracts))
        return contracts

    async def _fetch_point(self, contract: EdgexContract) -> float | None:
        payload = await self._http.get_json(
            EDGEX_FUNDING_URL,
            f"funding for {contract.contract_id}",
            params={"contractId": contract.contract_id},
        )
        data = payload.get("data") if isinstance(payload, dict) else None
        point = data[0] if isinstance(data, list) and data else None
        return parse_edgex_point(point, contract.interval_min)

    async def fetch_funding_rates(self) -> RatesBySource:
        """Sweep funding for all eligible contracts.

        A failed metadata reload with contracts already known is reported
        through partial_error, like a failed contract.
        """
        stale = time.monotonic() - self._metadata_loaded_at >= self._metadata_interval
        if not self._contracts or stale:
            try:
                await self.refresh_metadata()
            except SourceFetchError:
                if not self._contracts:
                    raise
                logger.warning("edgex_metadata_refresh_failed", kept=len(self._contracts))

        selection = list(self._contracts)
        results, last_error = await sweep(selection, self._fetch_point, self._fetch_gap)
        for contract, rate in results:
            self._rates_by_contract[contract.contract_id] = rate
        self.partial_error = last_error or self.metadata_error

        rates: dict[str, float] = {}
        for contract in self._contracts:
            rate = self._rates_by_contract.get(contract.contract_id)
            if rate is not None:
                rates[contract.symbol] = rate

        logger.debug(
            "edgex_sweep_complete",
            requested=len(selection),
            fetched=len(results),
            error=last_error,
        )
        return {ExchangeId.EDGEX: rates}
