"""Rate source reading the active record from a PostgREST (Supabase) endpoint."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .base import MalformedRateError, RateSource, RateSourceError
from .http_client import HTTPClient, HTTPClientConfig, HTTPClientError
from .schemas import ExchangeRate


class RestRateSource(RateSource):
    """Query ``/<table>?is_active=eq.true`` on a hosted REST data API."""

    name = "rest"

    def __init__(self, client: HTTPClient, table: str = "exchange_rates") -> None:
        self._client = client
        self._table = table

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> RestRateSource:
        api_key = str(config.get("RATE_SOURCE_API_KEY") or "")
        headers = {"Accept": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"

        base_url = config.get("RATE_SOURCE_BASE_URL")
        if not isinstance(base_url, str) or not base_url.strip():
            raise RateSourceError("RATE_SOURCE_BASE_URL must be configured for the rest source.")

        client_config = HTTPClientConfig(
            base_url=base_url,
            timeout=float(config.get("REQUEST_TIMEOUT_SECONDS", 5)),
            max_retries=int(config.get("RATE_SOURCE_MAX_RETRIES", 1)),
            backoff_seconds=float(config.get("RATE_SOURCE_BACKOFF_SECONDS", 0.5)),
            headers=headers,
        )
        table = str(config.get("RATE_SOURCE_TABLE") or "exchange_rates")
        return cls(HTTPClient(client_config), table=table)

    def get_active_rate(self) -> ExchangeRate | None:
        params = {"select": "*", "is_active": "eq.true", "limit": "2"}
        try:
            payload = self._client.get(f"/{self._table}", params=params)
        except HTTPClientError as exc:
            raise RateSourceError(str(exc)) from exc

        if not isinstance(payload, list):
            raise MalformedRateError("Expected a list of exchange rate rows from the rate source")
        if not payload:
            return None
        if len(payload) > 1:
            raise MalformedRateError("Rate source returned more than one active exchange rate")

        rate = ExchangeRate.from_mapping(payload[0])
        if not rate.is_active:
            raise MalformedRateError("Rate source returned an inactive record as active")
        return rate
