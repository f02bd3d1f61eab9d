from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

HospitalRecord = dict[str, Any]


@dataclass(frozen=True)
class OptionRef:
    label: str
    value: str

    @property
    def is_all(self) -> bool:
        return self.value == ""


ALL_OPTION = OptionRef(label="All", value="")


@dataclass(frozen=True)
class Filters:
    province: OptionRef
    district: OptionRef
    covid_test: OptionRef = ALL_OPTION


@dataclass(frozen=True)
class PaginationMeta:
    page: int
    size: int
    total_pages: int | None = None
    total_records: int | None = None


@dataclass(frozen=True)
class FetchResult:
    records: list[HospitalRecord] = field(default_factory=list)
    pagination: PaginationMeta = field(default_factory=lambda: PaginationMeta(page=1, size=10))


class FetchStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"
