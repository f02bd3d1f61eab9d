from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace

from hospital_capacity.models import ALL_OPTION, Filters, OptionRef

logger = logging.getLogger(__name__)

FilterListener = Callable[[Filters, bool], None]


class FilterState:
    """Active filter selections for one view-session.

    Listeners receive the new filters and whether the province changed.
    Option membership is not validated here; the presentation layer only
    offers options it received from this session.
    """

    def __init__(self, initial: Filters) -> None:
        self._filters = initial
        self._listeners: list[FilterListener] = []

    @property
    def filters(self) -> Filters:
        return self._filters

    def subscribe(self, listener: FilterListener) -> None:
        self._listeners.append(listener)

    def set_province(self, option: OptionRef) -> None:
        self._filters = replace(self._filters, province=option, district=ALL_OPTION)
        self._notify(province_changed=True)

    def set_district(self, option: OptionRef) -> None:
        self._filters = replace(self._filters, district=option)
        self._notify(province_changed=False)

    def set_covid_test(self, option: OptionRef) -> None:
        self._filters = replace(self._filters, covid_test=option)
        self._notify(province_changed=False)

    def _notify(self, province_changed: bool) -> None:
        logger.debug(
            "filters_changed",
            extra={
                "province": self._filters.province.value,
                "district": self._filters.district.value,
                "covid_test": self._filters.covid_test.value,
                "province_changed": province_changed,
            },
        )
        for listener in list(self._listeners):
            listener(self._filters, province_changed)
