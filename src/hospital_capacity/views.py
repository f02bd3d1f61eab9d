"""Read-only views handed to the presentation layer.

Filter consumers and result consumers are kept apart: the filter panel only
sees ``FilterView``, the table only ``ResultView`` and the pager only
``PaginationView``. Each view hands out a frozen snapshot to its subscribers
whenever the state behind it changes.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from hospital_capacity.districts import DistrictOptionsLoader
from hospital_capacity.filters import FilterState
from hospital_capacity.models import FetchStatus, Filters, HospitalRecord, OptionRef
from hospital_capacity.options import COVID_TEST_OPTIONS, PROVINCE_OPTIONS
from hospital_capacity.orchestrator import DataFetchOrchestrator
from hospital_capacity.pagination import PaginationState

S = TypeVar("S")


@dataclass(frozen=True)
class FilterSnapshot:
    filters: Filters
    district_options: tuple[OptionRef, ...]
    district_error: str | None


@dataclass(frozen=True)
class ResultSnapshot:
    is_loaded: bool
    records: tuple[HospitalRecord, ...]
    status: FetchStatus
    error: str | None


@dataclass(frozen=True)
class PaginationSnapshot:
    page: int
    size: int
    total_pages: int | None
    total_records: int | None


class _ObservableView(Generic[S]):
    def __init__(self) -> None:
        self._listeners: list[Callable[[S], None]] = []

    def snapshot(self) -> S:
        raise NotImplementedError

    def subscribe(self, listener: Callable[[S], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)


class FilterView(_ObservableView[FilterSnapshot]):
    def __init__(self, filter_state: FilterState, district_loader: DistrictOptionsLoader) -> None:
        super().__init__()
        self._filter_state = filter_state
        self._district_loader = district_loader

    @property
    def filters(self) -> Filters:
        return self._filter_state.filters

    @property
    def district_options(self) -> list[OptionRef]:
        return self._district_loader.options

    @property
    def district_error(self) -> str | None:
        return self._district_loader.error

    @property
    def province_options(self) -> list[OptionRef]:
        return list(PROVINCE_OPTIONS)

    @property
    def covid_test_options(self) -> list[OptionRef]:
        return list(COVID_TEST_OPTIONS)

    def set_province(self, option: OptionRef) -> None:
        self._filter_state.set_province(option)

    def set_district(self, option: OptionRef) -> None:
        self._filter_state.set_district(option)

    def set_covid_test(self, option: OptionRef) -> None:
        self._filter_state.set_covid_test(option)

    def snapshot(self) -> FilterSnapshot:
        return FilterSnapshot(
            filters=self.filters,
            district_options=tuple(self.district_options),
            district_error=self.district_error,
        )


class ResultView(_ObservableView[ResultSnapshot]):
    def __init__(self, orchestrator: DataFetchOrchestrator) -> None:
        super().__init__()
        self._orchestrator = orchestrator

    @property
    def is_loaded(self) -> bool:
        return self._orchestrator.is_loaded

    @property
    def records(self) -> list[HospitalRecord]:
        return self._orchestrator.records

    @property
    def status(self) -> FetchStatus:
        return self._orchestrator.status

    @property
    def error(self) -> str | None:
        return self._orchestrator.error

    def retry(self) -> asyncio.Task[None] | None:
        return self._orchestrator.retry()

    def snapshot(self) -> ResultSnapshot:
        return ResultSnapshot(
            is_loaded=self.is_loaded,
            records=tuple(self.records),
            status=self.status,
            error=self.error,
        )


class PaginationView(_ObservableView[PaginationSnapshot]):
    def __init__(self, pagination: PaginationState) -> None:
        super().__init__()
        self._pagination = pagination

    @property
    def page(self) -> int:
        return self._pagination.meta.page

    @property
    def size(self) -> int:
        return self._pagination.meta.size

    @property
    def total_pages(self) -> int | None:
        return self._pagination.meta.total_pages

    @property
    def total_records(self) -> int | None:
        return self._pagination.meta.total_records

    def set_page(self, page: int) -> None:
        self._pagination.set_page(page)

    def snapshot(self) -> PaginationSnapshot:
        meta = self._pagination.meta
        return PaginationSnapshot(
            page=meta.page,
            size=meta.size,
            total_pages=meta.total_pages,
            total_records=meta.total_records,
        )
