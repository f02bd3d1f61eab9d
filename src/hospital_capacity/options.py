from __future__ import annotations

from hospital_capacity.models import ALL_OPTION, Filters, OptionRef

PROVINCE_OPTIONS: tuple[OptionRef, ...] = (
    OptionRef(label="Province 1", value="Province 1"),
    OptionRef(label="Province 2", value="Province 2"),
    OptionRef(label="Bagmati", value="Bagmati"),
    OptionRef(label="Gandaki", value="Gandaki"),
    OptionRef(label="Province 5", value="Province 5"),
    OptionRef(label="Karnali", value="Karnali"),
    OptionRef(label="Sudurpashchim", value="Sudurpashchim"),
)

COVID_TEST_OPTIONS: tuple[OptionRef, ...] = (
    ALL_OPTION,
    OptionRef(label="Yes", value="yes"),
    OptionRef(label="No", value="no"),
)

DEFAULT_PROVINCE = PROVINCE_OPTIONS[2]
DEFAULT_DISTRICT = OptionRef(label="Kathmandu", value="Kathmandu")


def find_province(value: str) -> OptionRef:
    for option in PROVINCE_OPTIONS:
        if option.value == value:
            return option
    supported = ", ".join(option.value for option in PROVINCE_OPTIONS)
    raise ValueError(f"unsupported province '{value}', supported: {supported}")


def default_filters(province: str | None = None, district: str | None = None) -> Filters:
    province_option = find_province(province) if province else DEFAULT_PROVINCE
    district_option = OptionRef(label=district, value=district) if district else DEFAULT_DISTRICT
    return Filters(province=province_option, district=district_option, covid_test=ALL_OPTION)
