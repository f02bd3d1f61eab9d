from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from time import perf_counter

from hospital_capacity.clients import DistrictLookup
from hospital_capacity.metrics import InMemoryFetchMetricsCollector
from hospital_capacity.models import ALL_OPTION, OptionRef
from hospital_capacity.schemas import parse_district_names

logger = logging.getLogger(__name__)

_KIND = "district_list"


class DistrictOptionsLoader:
    """Keeps the district dropdown in step with the selected province.

    Each load replaces the option list wholesale. A failed load keeps the
    previous list. Loads are tagged with a generation id so a slow response
    for an earlier province never replaces the list for the current one.
    """

    def __init__(
        self,
        lookup: DistrictLookup,
        metrics: InMemoryFetchMetricsCollector | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._lookup = lookup
        self._metrics = metrics
        self._on_change = on_change
        self._options: list[OptionRef] = []
        self._error: str | None = None
        self._generation = 0
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def options(self) -> list[OptionRef]:
        return list(self._options)

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def generation(self) -> int:
        return self._generation

    def schedule(self, province: OptionRef | None) -> asyncio.Task[None] | None:
        if province is None:
            return None
        self._generation += 1
        task = asyncio.get_running_loop().create_task(self.load(self._generation, province.value))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def load(self, generation: int, province_value: str) -> None:
        self._increment("dispatched")
        started = perf_counter()
        try:
            raw = await self._lookup.fetch_district_list(province_value)
            names = parse_district_names(raw)
        except asyncio.CancelledError:
            self._increment("discarded")
            raise
        except Exception as exc:
            if generation != self._generation:
                self._increment("discarded")
                return
            self._increment("failed")
            self._error = str(exc)
            logger.warning(
                "district_options_load_failed",
                extra={"province": province_value, "generation": generation, "error": str(exc)},
            )
            self._emit()
            return
        finally:
            if self._metrics:
                self._metrics.observe_duration(_KIND, (perf_counter() - started) * 1000.0)

        if generation != self._generation:
            self._increment("discarded")
            logger.info(
                "district_options_discarded",
                extra={"province": province_value, "generation": generation, "latest": self._generation},
            )
            return

        self._options = [ALL_OPTION, *(OptionRef(label=name, value=name) for name in names)]
        self._error = None
        self._increment("applied")
        logger.info(
            "district_options_loaded",
            extra={"province": province_value, "option_count": len(self._options)},
        )
        self._emit()

    async def wait_idle(self) -> None:
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    def _increment(self, outcome: str) -> None:
        if self._metrics:
            self._metrics.increment(_KIND, outcome)

    def _emit(self) -> None:
        if self._on_change:
            self._on_change()
