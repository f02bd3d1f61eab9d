import asyncio
from dataclasses import replace

import pytest

from hospital_capacity.exceptions import NetworkError
from hospital_capacity.metrics import InMemoryFetchMetricsCollector
from hospital_capacity.models import FetchStatus, OptionRef, PaginationMeta
from hospital_capacity.options import default_filters
from hospital_capacity.orchestrator import DataFetchOrchestrator
from hospital_capacity.pagination import PaginationState


def capacity_response(page: int, names: list[str], total_pages: int = 3, total_records: int = 25) -> dict:
    return {
        "docs": [{"name": name} for name in names],
        "page": page,
        "size": 10,
        "totalPages": total_pages,
        "totalRecords": total_records,
    }


class ControlledCapacityApi:
    def __init__(self) -> None:
        self.payloads: list[dict] = []
        self.pending: list[asyncio.Future] = []

    async def fetch_hospital_capacity(self, payload: dict) -> dict:
        self.payloads.append(dict(payload))
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future


@pytest.mark.asyncio
async def test_success_replaces_records_and_pagination() -> None:
    api = ControlledCapacityApi()
    pagination = PaginationState(page=1, size=10)
    orchestrator = DataFetchOrchestrator(api, pagination)

    task = orchestrator.schedule(default_filters())
    assert orchestrator.is_loaded is False
    assert orchestrator.status is FetchStatus.LOADING
    await asyncio.sleep(0)
    api.pending[0].set_result(capacity_response(1, ["Bir Hospital", "Patan Hospital"]))
    await task

    assert orchestrator.is_loaded is True
    assert orchestrator.status is FetchStatus.IDLE
    assert orchestrator.records == [{"name": "Bir Hospital"}, {"name": "Patan Hospital"}]
    assert pagination.meta == PaginationMeta(page=1, size=10, total_pages=3, total_records=25)

    second = orchestrator.schedule(default_filters())
    await asyncio.sleep(0)
    api.pending[1].set_result(capacity_response(1, ["Teaching Hospital"], total_pages=1, total_records=1))
    await second

    assert orchestrator.records == [{"name": "Teaching Hospital"}]
    assert pagination.meta.total_records == 1


def test_payload_carries_page_size_province_and_district_only() -> None:
    api = ControlledCapacityApi()
    orchestrator = DataFetchOrchestrator(api, PaginationState(page=2, size=10))
    filters = default_filters()

    payload = orchestrator.build_payload(filters)

    assert payload == {"page": 2, "size": 10, "province": "Bagmati", "district": "Kathmandu"}


def test_payload_can_include_covid_test_when_enabled() -> None:
    orchestrator = DataFetchOrchestrator(ControlledCapacityApi(), PaginationState(), send_covid_test=True)
    filters = default_filters()

    payload = orchestrator.build_payload(filters)

    assert payload["covidTest"] == ""


@pytest.mark.asyncio
async def test_failure_keeps_last_success_and_clears_loading() -> None:
    api = ControlledCapacityApi()
    pagination = PaginationState()
    orchestrator = DataFetchOrchestrator(api, pagination)

    first = orchestrator.schedule(default_filters())
    await asyncio.sleep(0)
    api.pending[0].set_result(capacity_response(1, ["Bir Hospital"]))
    await first

    second = orchestrator.schedule(default_filters())
    await asyncio.sleep(0)
    api.pending[1].set_exception(NetworkError("capacity service unavailable"))
    await second

    assert orchestrator.is_loaded is True
    assert orchestrator.records == [{"name": "Bir Hospital"}]
    assert pagination.meta.total_records == 25
    assert orchestrator.error == "capacity service unavailable"


@pytest.mark.asyncio
async def test_unexpected_exception_does_not_escape() -> None:
    class ExplodingApi:
        async def fetch_hospital_capacity(self, payload: dict) -> dict:
            raise RuntimeError("boom")

    orchestrator = DataFetchOrchestrator(ExplodingApi(), PaginationState())

    await orchestrator.schedule(default_filters())

    assert orchestrator.is_loaded is True
    assert orchestrator.records == []
    assert orchestrator.error == "boom"


@pytest.mark.asyncio
async def test_late_response_for_older_generation_is_discarded() -> None:
    api = ControlledCapacityApi()
    pagination = PaginationState(page=1, size=10)
    metrics = InMemoryFetchMetricsCollector()
    orchestrator = DataFetchOrchestrator(api, pagination, cancel_superseded=False, metrics=metrics)
    filters = default_filters()

    first = orchestrator.schedule(filters)
    pagination.set_page(2)
    second = orchestrator.schedule(filters)
    await asyncio.sleep(0)
    assert [payload["page"] for payload in api.payloads] == [1, 2]

    api.pending[1].set_result(capacity_response(2, ["Page Two Hospital"]))
    await second
    api.pending[0].set_result(capacity_response(1, ["Page One Hospital"]))
    await first

    assert orchestrator.generation == 2
    assert orchestrator.records == [{"name": "Page Two Hospital"}]
    assert pagination.page == 2
    assert metrics.count("hospital_capacity", "applied") == 1
    assert metrics.count("hospital_capacity", "discarded") == 1


@pytest.mark.asyncio
async def test_late_failure_for_older_generation_is_discarded() -> None:
    api = ControlledCapacityApi()
    orchestrator = DataFetchOrchestrator(api, PaginationState(), cancel_superseded=False)

    first = orchestrator.schedule(default_filters())
    second = orchestrator.schedule(default_filters())
    await asyncio.sleep(0)
    api.pending[1].set_result(capacity_response(1, ["Bir Hospital"]))
    await second
    api.pending[0].set_exception(NetworkError("stale failure"))
    await first

    assert orchestrator.error is None
    assert orchestrator.records == [{"name": "Bir Hospital"}]


@pytest.mark.asyncio
async def test_superseded_request_is_cancelled() -> None:
    api = ControlledCapacityApi()
    metrics = InMemoryFetchMetricsCollector()
    orchestrator = DataFetchOrchestrator(api, PaginationState(), metrics=metrics)

    first = orchestrator.schedule(default_filters())
    await asyncio.sleep(0)
    second = orchestrator.schedule(default_filters())
    await asyncio.sleep(0)
    api.pending[1].set_result(capacity_response(1, ["Bir Hospital"]))
    await second
    await orchestrator.wait_idle()

    assert first.cancelled()
    assert api.pending[0].cancelled()
    assert orchestrator.records == [{"name": "Bir Hospital"}]
    assert metrics.count("hospital_capacity", "discarded") == 1


@pytest.mark.asyncio
async def test_observers_see_loading_then_outcome() -> None:
    api = ControlledCapacityApi()
    seen: list[tuple[FetchStatus, bool]] = []
    def record() -> None:
        seen.append((orchestrator.status, orchestrator.is_loaded))

    orchestrator = DataFetchOrchestrator(api, PaginationState(), on_change=record)

    task = orchestrator.schedule(default_filters())
    await asyncio.sleep(0)
    api.pending[0].set_exception(NetworkError("down"))
    await task

    assert seen == [(FetchStatus.LOADING, False), (FetchStatus.ERROR, True)]
    assert orchestrator.status is FetchStatus.IDLE


@pytest.mark.asyncio
async def test_retry_reuses_last_filters() -> None:
    api = ControlledCapacityApi()
    orchestrator = DataFetchOrchestrator(api, PaginationState())
    assert orchestrator.retry() is None

    filters = replace(default_filters(), district=OptionRef(label="Lalitpur", value="Lalitpur"))
    first = orchestrator.schedule(filters)
    await asyncio.sleep(0)
    api.pending[0].set_exception(NetworkError("down"))
    await first

    retried = orchestrator.retry()
    await asyncio.sleep(0)
    api.pending[1].set_result(capacity_response(1, ["Patan Hospital"]))
    await retried

    assert api.payloads[1]["district"] == "Lalitpur"
    assert orchestrator.error is None
    assert orchestrator.records == [{"name": "Patan Hospital"}]


@pytest.mark.asyncio
async def test_fetch_started_from_loading_observer_becomes_inflight() -> None:
    api = ControlledCapacityApi()
    filters = default_filters()
    nested: list[asyncio.Task] = []
    state = {"nested": False}

    def on_change() -> None:
        if orchestrator.status is FetchStatus.LOADING and not state["nested"]:
            state["nested"] = True
            nested.append(orchestrator.schedule(filters))

    orchestrator = DataFetchOrchestrator(api, PaginationState(), on_change=on_change)
    outer = orchestrator.schedule(filters)
    await asyncio.sleep(0)

    assert orchestrator.generation == 2
    assert len(api.payloads) == 1
    api.pending[0].set_result(capacity_response(1, ["Bir Hospital"]))
    await nested[0]
    await orchestrator.wait_idle()

    assert outer.cancelled()
    assert orchestrator.records == [{"name": "Bir Hospital"}]
    assert orchestrator.status is FetchStatus.IDLE
