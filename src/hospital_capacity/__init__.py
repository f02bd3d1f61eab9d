"""Filter, pagination and fetch coordination for the hospital capacity browser."""

from hospital_capacity.clients import DistrictLookup, HospitalCapacityApiClient, HospitalCapacityFetcher
from hospital_capacity.config import HospitalCapacitySettings, load_settings
from hospital_capacity.districts import DistrictOptionsLoader
from hospital_capacity.exceptions import HospitalCapacityError, NetworkError, NetworkTimeoutError, ResponseFormatError
from hospital_capacity.filters import FilterState
from hospital_capacity.models import ALL_OPTION, FetchResult, FetchStatus, Filters, OptionRef, PaginationMeta
from hospital_capacity.orchestrator import DataFetchOrchestrator
from hospital_capacity.pagination import PaginationState
from hospital_capacity.session import HospitalCapacitySession
from hospital_capacity.views import FilterView, PaginationView, ResultView

__all__ = [
    "ALL_OPTION",
    "DataFetchOrchestrator",
    "DistrictLookup",
    "DistrictOptionsLoader",
    "FetchResult",
    "FetchStatus",
    "FilterState",
    "FilterView",
    "Filters",
    "HospitalCapacityApiClient",
    "HospitalCapacityError",
    "HospitalCapacityFetcher",
    "HospitalCapacitySession",
    "HospitalCapacitySettings",
    "NetworkError",
    "NetworkTimeoutError",
    "OptionRef",
    "PaginationMeta",
    "PaginationState",
    "PaginationView",
    "ResponseFormatError",
    "ResultView",
    "load_settings",
]
