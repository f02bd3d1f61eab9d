from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from time import perf_counter
from typing import Any

from hospital_capacity.clients import HospitalCapacityFetcher
from hospital_capacity.metrics import InMemoryFetchMetricsCollector
from hospital_capacity.models import FetchStatus, Filters, HospitalRecord
from hospital_capacity.pagination import PaginationState
from hospital_capacity.schemas import HospitalCapacityQuery, parse_capacity_response

logger = logging.getLogger(__name__)

_KIND = "hospital_capacity"


class DataFetchOrchestrator:
    """Fetches hospital capacity records for the current filters and page.

    Every dispatch gets the next generation id. A response is applied only
    when its generation is still the latest one; anything older is dropped.
    Failures are logged and leave the last successful records and pagination
    in place, with ``is_loaded`` cleared so the table stops spinning.
    """

    def __init__(
        self,
        fetcher: HospitalCapacityFetcher,
        pagination: PaginationState,
        cancel_superseded: bool = True,
        send_covid_test: bool = False,
        metrics: InMemoryFetchMetricsCollector | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._pagination = pagination
        self._cancel_superseded = cancel_superseded
        self._send_covid_test = send_covid_test
        self._metrics = metrics
        self._on_change = on_change
        self._status = FetchStatus.IDLE
        self._is_loaded = False
        self._records: list[HospitalRecord] = []
        self._error: str | None = None
        self._generation = 0
        self._last_filters: Filters | None = None
        self._inflight: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def status(self) -> FetchStatus:
        return self._status

    @property
    def is_loaded(self) -> bool:
        return self._is_loaded

    @property
    def records(self) -> list[HospitalRecord]:
        return list(self._records)

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def generation(self) -> int:
        return self._generation

    def build_payload(self, filters: Filters) -> dict[str, Any]:
        # covid_test is tracked in the filters but only sent when enabled.
        query = HospitalCapacityQuery(
            page=self._pagination.page,
            size=self._pagination.size,
            province=filters.province.value if filters.province else "",
            district=filters.district.value if filters.district else "",
            covid_test=filters.covid_test.value if self._send_covid_test and filters.covid_test else None,
        )
        return query.to_payload()

    def schedule(self, filters: Filters) -> asyncio.Task[None]:
        loop = asyncio.get_running_loop()
        self._last_filters = filters
        self._generation += 1
        generation = self._generation
        payload = self.build_payload(filters)

        inflight = self._inflight
        if (
            self._cancel_superseded
            and inflight is not None
            and not inflight.done()
            and inflight is not asyncio.current_task()
        ):
            inflight.cancel()

        self._status = FetchStatus.LOADING
        self._is_loaded = False
        logger.info(
            "hospital_capacity_fetch_started",
            extra={"generation": generation, "payload": payload},
        )
        task = loop.create_task(self._run(generation, payload))
        self._inflight = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._emit()
        return task

    def retry(self) -> asyncio.Task[None] | None:
        if self._last_filters is None:
            return None
        return self.schedule(self._last_filters)

    async def _run(self, generation: int, payload: dict[str, Any]) -> None:
        self._increment("dispatched")
        started = perf_counter()
        try:
            raw = await self._fetcher.fetch_hospital_capacity(payload)
            result = parse_capacity_response(raw)
        except asyncio.CancelledError:
            self._increment("discarded")
            logger.info("hospital_capacity_fetch_cancelled", extra={"generation": generation})
            raise
        except Exception as exc:
            self._observe(started)
            if self._is_stale(generation):
                return
            self._increment("failed")
            logger.error(
                "hospital_capacity_fetch_failed",
                extra={"generation": generation, "payload": payload, "error": str(exc)},
            )
            self._error = str(exc)
            self._finish(generation, FetchStatus.ERROR)
            return

        self._observe(started)
        if self._is_stale(generation):
            return
        self._records = list(result.records)
        self._pagination.apply_server_meta(result.pagination)
        self._error = None
        self._increment("applied")
        logger.info(
            "hospital_capacity_fetch_completed",
            extra={
                "generation": generation,
                "record_count": len(result.records),
                "page": result.pagination.page,
                "total_records": result.pagination.total_records,
            },
        )
        self._finish(generation, FetchStatus.SUCCESS)

    def _is_stale(self, generation: int) -> bool:
        if generation == self._generation:
            return False
        self._increment("discarded")
        logger.info(
            "hospital_capacity_fetch_discarded",
            extra={"generation": generation, "latest": self._generation},
        )
        return True

    def _finish(self, generation: int, outcome: FetchStatus) -> None:
        self._is_loaded = True
        self._status = outcome
        self._emit()
        # An observer may have dispatched a newer fetch from the callback.
        if generation == self._generation:
            self._status = FetchStatus.IDLE

    async def wait_idle(self) -> None:
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    def _observe(self, started: float) -> None:
        if self._metrics:
            self._metrics.observe_duration(_KIND, (perf_counter() - started) * 1000.0)

    def _increment(self, outcome: str) -> None:
        if self._metrics:
            self._metrics.increment(_KIND, outcome)

    def _emit(self) -> None:
        if self._on_change:
            self._on_change()
