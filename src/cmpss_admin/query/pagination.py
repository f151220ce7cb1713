from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    per_page: int = 20

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.per_page < 1:
            raise ValueError(f"per_page must be >= 1, got {self.per_page}")

    def goto(self, page: int) -> "PageRequest":
        return replace(self, page=page)

    def first(self) -> "PageRequest":
        return replace(self, page=1)

    def params(self) -> dict[str, int]:
        return {"page": self.page, "per_page": self.per_page}


@dataclass(frozen=True)
class PageResult:
    items: list[Any] = field(default_factory=list)
    total: int = 0
    total_pages: int = 0
    page: int = 1
    per_page: int = 20

    @classmethod
    def empty(cls, request: PageRequest | None = None) -> "PageResult":
        request = request or PageRequest()
        return cls(items=[], total=0, total_pages=0, page=request.page, per_page=request.per_page)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def total_pages_for(total: int, per_page: int) -> int:
    if per_page <= 0:
        return 0
    return math.ceil(total / per_page)
