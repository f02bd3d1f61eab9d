from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class HospitalCapacitySettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HOSPITAL_CAPACITY_", extra="ignore")

    SERVICE_NAME: str = "hospital-capacity"
    API_BASE_URL: str = "http://localhost:8000/api/v1"
    CAPACITY_PATH: str = "/hospitals/capacity"
    DISTRICTS_PATH: str = "/districts"
    REQUEST_TIMEOUT_SECONDS: float | None = None
    PAGE_SIZE: int = 10
    DEFAULT_PROVINCE: str = "Bagmati"
    DEFAULT_DISTRICT: str = "Kathmandu"
    RESET_PAGE_ON_FILTER_CHANGE: bool = True
    CANCEL_SUPERSEDED: bool = True
    SEND_COVID_TEST: bool = False


def load_settings() -> HospitalCapacitySettings:
    return HospitalCapacitySettings()
