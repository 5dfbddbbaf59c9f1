"""Pagination math for the approval list pager"""

import math
from typing import List, Tuple, Union

GAP = "..."
MAX_VISIBLE_PAGES = 5


def page_count(total: int, page_size: int) -> int:
    """ceil(total / page_size); an empty result still shows one page"""
    if total <= 0:
        return 1
    return math.ceil(total / page_size)


def item_range(page: int, page_size: int, total: int) -> Tuple[int, int]:
    """1-based (first, last) item numbers shown on a page, (0, 0) when empty"""
    if total <= 0:
        return 0, 0
    first = (page - 1) * page_size + 1
    last = min(page * page_size, total)
    return first, last


def page_window(current: int, total_pages: int, max_visible: int = MAX_VISIBLE_PAGES) -> List[Union[int, str]]:
    """
    Page numbers to render in the pager.

    Shows at most ``max_visible`` consecutive pages centred on ``current``,
    always including the first and last page with a "..." gap where pages
    are skipped.

    Example:
        page_window(6, 20) -> [1, "...", 4, 5, 6, 7, 8, "...", 20]
    """
    if total_pages <= max_visible:
        return list(range(1, total_pages + 1))

    start = max(1, current - max_visible // 2)
    end = min(total_pages, start + max_visible - 1)
    # Shift the window back when it hits the last page
    if end - start < max_visible - 1:
        start = max(1, end - max_visible + 1)

    pages: List[Union[int, str]] = []
    if start > 1:
        pages.append(1)
        if start > 2:
            pages.append(GAP)

    pages.extend(range(start, end + 1))

    if end < total_pages:
        if end < total_pages - 1:
            pages.append(GAP)
        pages.append(total_pages)

    return pages
