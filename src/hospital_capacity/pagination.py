from __future__ import annotations

from collections.abc import Callable

from hospital_capacity.models import PaginationMeta


class PaginationState:
    def __init__(self, page: int = 1, size: int = 10) -> None:
        _require_positive("page", page)
        _require_positive("size", size)
        self._meta = PaginationMeta(page=page, size=size)
        self._listeners: list[Callable[[int], None]] = []

    @property
    def meta(self) -> PaginationMeta:
        return self._meta

    @property
    def page(self) -> int:
        return self._meta.page

    @property
    def size(self) -> int:
        return self._meta.size

    def subscribe(self, listener: Callable[[int], None]) -> None:
        self._listeners.append(listener)

    def set_page(self, page: int) -> None:
        # Not checked against total_pages; the server clamps or returns an empty page.
        _require_positive("page", page)
        if page == self._meta.page:
            return
        self._meta = PaginationMeta(
            page=page,
            size=self._meta.size,
            total_pages=self._meta.total_pages,
            total_records=self._meta.total_records,
        )
        for listener in list(self._listeners):
            listener(page)

    def reset_page(self) -> None:
        """Move back to the first page without notifying listeners."""
        if self._meta.page == 1:
            return
        self._meta = PaginationMeta(
            page=1,
            size=self._meta.size,
            total_pages=self._meta.total_pages,
            total_records=self._meta.total_records,
        )

    def apply_server_meta(self, meta: PaginationMeta) -> None:
        self._meta = meta


def _require_positive(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
