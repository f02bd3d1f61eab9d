from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hospital_capacity.exceptions import ResponseFormatError
from hospital_capacity.models import FetchResult, PaginationMeta


class HospitalCapacityQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    size: int = Field(default=10, ge=1)
    province: str = ""
    district: str = ""
    covid_test: str | None = Field(default=None, serialization_alias="covidTest")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class HospitalCapacityResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    docs: list[dict[str, Any]]
    page: int = Field(ge=1)
    size: int = Field(ge=1)
    total_pages: int = Field(default=0, ge=0, alias="totalPages")
    total_records: int = Field(default=0, ge=0, alias="totalRecords")


class DistrictItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str


class DistrictListResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    docs: list[DistrictItem]


def parse_capacity_response(payload: Any) -> FetchResult:
    try:
        response = HospitalCapacityResponse.model_validate(payload)
    except ValidationError as exc:
        raise ResponseFormatError(f"invalid hospital capacity payload: {exc.error_count()} error(s)") from exc
    return FetchResult(
        records=list(response.docs),
        pagination=PaginationMeta(
            page=response.page,
            size=response.size,
            total_pages=response.total_pages,
            total_records=response.total_records,
        ),
    )


def parse_district_names(payload: Any) -> list[str]:
    try:
        response = DistrictListResponse.model_validate(payload)
    except ValidationError as exc:
        raise ResponseFormatError(f"invalid district list payload: {exc.error_count()} error(s)") from exc
    return [item.name for item in response.docs]
