from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

from ..core.constants import MAX_PAGE_SIZE


@dataclass(frozen=True)
class Page:
    items: Sequence[Any]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def envelope(self, serialize) -> dict:
        return {
            "data": [serialize(item) for item in self.items],
            "pagination": {
                "total": self.total,
                "page": self.page,
                "limit": self.limit,
                "pages": self.pages,
            },
        }


def clamp_limit(limit: int) -> int:
    return max(1, min(int(limit), MAX_PAGE_SIZE))
