# listing_gallery/services/pagination.py
import math
from dataclasses import dataclass

WIDE_VIEWPORT_MIN_WIDTH = 1024
WIDE_PAGE_SIZE = 12
NARROW_PAGE_SIZE = 8


def items_per_page_for_width(width) -> int:
    return WIDE_PAGE_SIZE if width >= WIDE_VIEWPORT_MIN_WIDTH else NARROW_PAGE_SIZE


def total_pages_for(item_count, items_per_page) -> int:
    return math.ceil(item_count / items_per_page)


@dataclass
class PaginationCursor:
    current_page: int = 1
    items_per_page: int = NARROW_PAGE_SIZE
    # Set whenever the page actually moves; the UI consumes and clears it.
    scroll_to_top_requested: bool = False

    def total_pages(self, item_count) -> int:
        return total_pages_for(item_count, self.items_per_page)

    def visible_slice(self, items):
        end = self.current_page * self.items_per_page
        return list(items[end - self.items_per_page:end])

    def on_viewport_change(self, width):
        # Page size changes never move the current page.
        self.items_per_page = items_per_page_for_width(width)

    def next_page(self, item_count) -> bool:
        if self.current_page < self.total_pages(item_count):
            self.current_page += 1
            self.scroll_to_top_requested = True
            return True
        return False

    def prev_page(self) -> bool:
        if self.current_page > 1:
            self.current_page -= 1
            self.scroll_to_top_requested = True
            return True
        return False

    def clamp(self, item_count):
        total = self.total_pages(item_count)
        if self.current_page > total and total > 0:
            self.current_page = total
        elif total == 0:
            self.current_page = 1

    def reset(self):
        self.current_page = 1
