class HospitalCapacityError(Exception):
    """Base hospital capacity exception."""


class NetworkError(HospitalCapacityError):
    """Raised when a record or district request failed."""


class NetworkTimeoutError(NetworkError):
    """Raised when a request did not complete in time."""


class ResponseFormatError(HospitalCapacityError):
    """Raised when a response payload cannot be parsed."""
