from __future__ import annotations

import math
from typing import Sequence, Tuple

from models import PAGE_SIZE, PacketPage, PacketSummary


def total_pages(count: int, page_size: int = PAGE_SIZE) -> int:
    return max(1, math.ceil(count / page_size))


def paginate(items: Sequence, page_size: int = PAGE_SIZE, page: int = 1) -> list:
    page = min(max(page, 1), total_pages(len(items), page_size))
    start = (page - 1) * page_size
    return list(items[start:start + page_size])


class PacketPageCache:
    """Read-only packet summary list with a current page."""

    def __init__(self, summaries: Sequence[PacketSummary] = (), page_size: int = PAGE_SIZE):
        self._summaries: Tuple[PacketSummary, ...] = tuple(summaries)
        self.page_size = page_size
        self._page = 1

    def replace(self, summaries: Sequence[PacketSummary]):
        self._summaries = tuple(summaries)

    def __len__(self) -> int:
        return len(self._summaries)

    @property
    def total_pages(self) -> int:
        return total_pages(len(self._summaries), self.page_size)

    @property
    def current_page(self) -> int:
        return min(self._page, self.total_pages)

    def set_page(self, page: int) -> bool:
        if page < 1 or page > self.total_pages:
            return False
        self._page = page
        return True

    def next_page(self) -> bool:
        return self.set_page(self.current_page + 1)

    def previous_page(self) -> bool:
        return self.set_page(self.current_page - 1)

    def view(self) -> PacketPage:
        page = self.current_page
        return PacketPage(
            items=paginate(self._summaries, self.page_size, page),
            current_page=page,
            total_pages=self.total_pages,
            page_size=self.page_size,
            total_items=len(self._summaries),
        )
