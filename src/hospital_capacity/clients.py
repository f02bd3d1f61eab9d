from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

import httpx

from hospital_capacity.config import HospitalCapacitySettings
from hospital_capacity.exceptions import NetworkError, NetworkTimeoutError, ResponseFormatError
from hospital_capacity.observability import get_tracer


class HospitalCapacityFetcher(Protocol):
    async def fetch_hospital_capacity(self, payload: dict[str, Any]) -> dict[str, Any]: ...


class DistrictLookup(Protocol):
    async def fetch_district_list(self, province_value: str) -> dict[str, Any]: ...


class HospitalCapacityApiClient:
    def __init__(
        self,
        base_url: str,
        capacity_path: str = "/hospitals/capacity",
        districts_path: str = "/districts",
        timeout_seconds: float | None = None,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._capacity_path = capacity_path
        self._districts_path = districts_path
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory

    @classmethod
    def from_settings(cls, settings: HospitalCapacitySettings) -> HospitalCapacityApiClient:
        return cls(
            base_url=settings.API_BASE_URL,
            capacity_path=settings.CAPACITY_PATH,
            districts_path=settings.DISTRICTS_PATH,
            timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS,
        )

    async def fetch_hospital_capacity(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._get(self._capacity_path, params=payload)

    async def fetch_district_list(self, province_value: str) -> dict[str, Any]:
        return await self._get(self._districts_path, params={"province": province_value})

    async def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        with get_tracer().start_as_current_span("hospital_capacity.http_get") as span:
            span.set_attribute("http.url", url)
            try:
                factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))
                async with factory() as client:
                    response = await client.get(url, params=params)
                    response.raise_for_status()
            except httpx.TimeoutException as exc:
                raise NetworkTimeoutError(f"request timed out: {path}") from exc
            except httpx.HTTPStatusError as exc:
                span.set_attribute("http.status_code", exc.response.status_code)
                raise NetworkError(f"request rejected: status={exc.response.status_code}, path={path}") from exc
            except httpx.HTTPError as exc:
                raise NetworkError(f"request failed: {path}") from exc
            span.set_attribute("http.status_code", response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise ResponseFormatError(f"response is not json: {path}") from exc
        if not isinstance(body, dict):
            raise ResponseFormatError(f"response is not a json object: {path}")
        return body
