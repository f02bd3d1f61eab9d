from __future__ import annotations

import asyncio
import logging

from hospital_capacity.clients import DistrictLookup, HospitalCapacityApiClient, HospitalCapacityFetcher
from hospital_capacity.config import HospitalCapacitySettings
from hospital_capacity.districts import DistrictOptionsLoader
from hospital_capacity.filters import FilterState
from hospital_capacity.metrics import InMemoryFetchMetricsCollector
from hospital_capacity.models import Filters
from hospital_capacity.observability import configure_otel
from hospital_capacity.options import default_filters
from hospital_capacity.orchestrator import DataFetchOrchestrator
from hospital_capacity.pagination import PaginationState
from hospital_capacity.views import FilterView, PaginationView, ResultView

logger = logging.getLogger(__name__)


class HospitalCapacitySession:
    """One hospital capacity browser session.

    Owns the filters, pagination, district options and records of a single
    view and wires their mutators to the dependent fetches. Must be used from
    a running event loop.
    """

    def __init__(
        self,
        fetcher: HospitalCapacityFetcher,
        district_lookup: DistrictLookup,
        settings: HospitalCapacitySettings | None = None,
        metrics: InMemoryFetchMetricsCollector | None = None,
    ) -> None:
        self._settings = settings or HospitalCapacitySettings()
        self._metrics = metrics
        self._started = False
        self._filter_state = FilterState(
            default_filters(self._settings.DEFAULT_PROVINCE, self._settings.DEFAULT_DISTRICT)
        )
        self._pagination = PaginationState(page=1, size=self._settings.PAGE_SIZE)
        self._district_loader = DistrictOptionsLoader(
            district_lookup,
            metrics=metrics,
            on_change=self._on_districts_changed,
        )
        self._orchestrator = DataFetchOrchestrator(
            fetcher,
            self._pagination,
            cancel_superseded=self._settings.CANCEL_SUPERSEDED,
            send_covid_test=self._settings.SEND_COVID_TEST,
            metrics=metrics,
            on_change=self._on_results_changed,
        )
        self.filter_view = FilterView(self._filter_state, self._district_loader)
        self.result_view = ResultView(self._orchestrator)
        self.pagination_view = PaginationView(self._pagination)
        self._filter_state.subscribe(self._on_filters_changed)
        self._pagination.subscribe(self._on_page_changed)

    @classmethod
    def from_settings(
        cls,
        settings: HospitalCapacitySettings,
        metrics: InMemoryFetchMetricsCollector | None = None,
    ) -> HospitalCapacitySession:
        configure_otel(settings.SERVICE_NAME)
        client = HospitalCapacityApiClient.from_settings(settings)
        return cls(fetcher=client, district_lookup=client, settings=settings, metrics=metrics)

    @property
    def filters(self) -> Filters:
        return self._filter_state.filters

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        filters = self._filter_state.filters
        logger.info(
            "hospital_capacity_session_started",
            extra={"province": filters.province.value, "district": filters.district.value},
        )
        self._district_loader.schedule(filters.province)
        self._orchestrator.schedule(filters)

    async def wait_idle(self) -> None:
        await asyncio.gather(self._district_loader.wait_idle(), self._orchestrator.wait_idle())

    async def close(self) -> None:
        self._district_loader.cancel_all()
        self._orchestrator.cancel_all()
        await self.wait_idle()
        logger.info("hospital_capacity_session_closed")

    async def __aenter__(self) -> HospitalCapacitySession:
        self.start()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    def _on_filters_changed(self, filters: Filters, province_changed: bool) -> None:
        if self._settings.RESET_PAGE_ON_FILTER_CHANGE:
            self._pagination.reset_page()
        if province_changed:
            self._district_loader.schedule(filters.province)
        self._orchestrator.schedule(filters)
        self.filter_view.notify()
        self.pagination_view.notify()

    def _on_page_changed(self, _: int) -> None:
        self._orchestrator.schedule(self._filter_state.filters)
        self.pagination_view.notify()

    def _on_results_changed(self) -> None:
        self.result_view.notify()
        self.pagination_view.notify()

    def _on_districts_changed(self) -> None:
        self.filter_view.notify()
