"""HTTP client for the market-data service.

The service exposes two endpoints, each answering
``{"success": <bool>, "data": {...}}``::

    GET {base}/market-salary?title=...&location=...
        -> data: {"min", "max", "median", "source"}
    GET {base}/cost-of-living?location=...
        -> data: {"index", "housingIndex", "groceriesIndex", ...}
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from applytrack.exceptions import MarketDataUnavailableError
from applytrack.schemas import CostOfLivingIndex, MarketEstimate, SalaryRange

logger = logging.getLogger(__name__)


class _SalaryPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    min: float
    max: float
    median: float


class _CostOfLivingPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    index: float
    housing_index: float | None = None
    groceries_index: float | None = None


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool = False
    data: dict[str, Any] | None = None


class RemoteMarketSource:
    """Fetches estimates from the market-data REST service."""

    def __init__(
        self,
        base_url: str,
        api_token: str = "",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        if api_token:
            self._session.headers["Authorization"] = f"Bearer {api_token}"

    def fetch_estimate(self, title: str, location: str) -> MarketEstimate:
        salary_data = self._get("market-salary", {"title": title, "location": location})
        col_data = self._get("cost-of-living", {"location": location})

        try:
            salary = _SalaryPayload.model_validate(salary_data)
            col = _CostOfLivingPayload.model_validate(col_data)
        except ValidationError as exc:
            raise MarketDataUnavailableError(f"Malformed market data: {exc}") from exc

        return MarketEstimate(
            salary_range=SalaryRange(min=salary.min, max=salary.max, median=salary.median),
            cost_of_living_index=CostOfLivingIndex(
                overall=col.index,
                housing=col.housing_index or col.index,
                groceries=col.groceries_index or col.index,
            ),
            source="api",
        )

    def _get(self, endpoint: str, params: dict[str, str]) -> Any:
        url = f"{self._base_url}/{endpoint}"
        logger.debug("GET %s %s", url, params)
        resp = self._session.get(url, params=params, timeout=self._timeout)
        resp.raise_for_status()
        try:
            envelope = _Envelope.model_validate_json(resp.content)
        except ValidationError as exc:
            raise MarketDataUnavailableError(f"{endpoint}: unexpected response body") from exc
        if not envelope.success or envelope.data is None:
            raise MarketDataUnavailableError(f"{endpoint}: service reported no data")
        return envelope.data
