# listing_gallery/services/gallery_app.py
import logging
import threading
from typing import List, Optional

from models.exceptions import ExtractionError, ValidationError
from models.product import Product, generate_product_id
from services.catalog_service import CatalogStore
from services.draft_service import DraftLifecycle
from services.extraction_service import ExtractionTask
from services.pagination import PaginationCursor

logger = logging.getLogger(__name__)

DEFAULT_MESSAGES = {
    "empty_url": "Please paste a listing URL.",
    "unsupported_url": "This link cannot be added.",
    "extraction_failed": "Something went wrong while fetching the product details. Please check the link.",
    "busy": "A product is already being fetched or reviewed.",
}


class GalleryApp:
    """
    Per-session application state: the catalog, the pending draft and the pagination cursor.
    The UI only ever changes state through the methods below.
    """

    def __init__(self, catalog: CatalogStore, extraction_client, supported_domain="avito.ma",
                 messages=None, extraction_timeout=None):
        self.catalog = catalog
        self.extraction_client = extraction_client
        self.supported_domain = supported_domain.lower()
        self.messages = {**DEFAULT_MESSAGES, **(messages or {})}
        self.extraction_timeout = extraction_timeout

        self.draft = DraftLifecycle()
        self.cursor = PaginationCursor()
        self.selected_product_id: Optional[str] = None
        self.last_error: Optional[str] = None
        self._pending_task: Optional[ExtractionTask] = None
        self._lock = threading.RLock()

        self.catalog.load_initial()

    # --- EXTRACTION ---
    def validate_url(self, url: str) -> str:
        url = (url or "").strip()
        if not url:
            raise ValidationError(self.messages["empty_url"])
        if self.supported_domain not in url.lower():
            raise ValidationError(self.messages["unsupported_url"])
        return url

    def is_loading(self) -> bool:
        return self._pending_task is not None

    def submit_url(self, url: str) -> ExtractionTask:
        with self._lock:
            try:
                url = self.validate_url(url)
            except ValidationError as e:
                self.last_error = e.user_message
                raise
            if self.is_loading() or self.draft.product is not None:
                raise RuntimeError(self.messages["busy"])
            self.last_error = None
            self._pending_task = self.extraction_client.submit(url)
            return self._pending_task

    def complete_extraction(self, task: ExtractionTask) -> Optional[Product]:
        """
        Waits for the task and turns its result into the draft.
        Returns None when the task is no longer the current one (its result is dropped).
        """
        try:
            result = task.result(timeout=self.extraction_timeout)
        except ExtractionError:
            with self._lock:
                if task is not self._pending_task:
                    logger.info(f"Ignoring failure of abandoned extraction for {task.url}")
                    return None
                self._pending_task = None
                self.last_error = self.messages["extraction_failed"]
            raise

        with self._lock:
            if task is not self._pending_task:
                logger.info(f"Discarding stale extraction result for {task.url}")
                return None
            self._pending_task = None
            product = Product.from_extraction(generate_product_id(self.catalog.ids()), task.url, result)
            self.draft.start(product)
            return product

    def fetch_product(self, url: str) -> Product:
        return self.complete_extraction(self.submit_url(url))

    def abandon_extraction(self):
        """Forgets the pending task; whatever it returns later is ignored."""
        with self._lock:
            if self._pending_task is not None:
                self._pending_task.cancel()
                self._pending_task = None

    # --- DRAFT ---
    def add_images_to_draft(self, images) -> int:
        with self._lock:
            return self.draft.add_images(images)

    def remove_image_from_draft(self, index: int) -> bool:
        with self._lock:
            return self.draft.remove_image_at(index)

    def publish_draft(self) -> Optional[Product]:
        with self._lock:
            product = self.draft.publish_to(self.catalog)
            if product is not None:
                self.cursor.reset()
                self.last_error = None
            return product

    def cancel_draft(self):
        with self._lock:
            self.draft.cancel()

    # --- CATALOG ---
    def remove_product(self, product_id) -> bool:
        with self._lock:
            removed = self.catalog.remove(product_id)
            self.last_error = None
            if self.selected_product_id == product_id:
                self.selected_product_id = None
            self.cursor.clamp(len(self.catalog))
            return removed

    def select_product(self, product_id):
        with self._lock:
            if self.catalog.get(product_id) is not None:
                self.selected_product_id = product_id

    def clear_selection(self):
        self.selected_product_id = None

    def selected_product(self) -> Optional[Product]:
        if self.selected_product_id is None:
            return None
        return self.catalog.get(self.selected_product_id)

    # --- PAGINATION ---
    def on_viewport_change(self, width):
        with self._lock:
            self.cursor.on_viewport_change(width)

    def total_pages(self) -> int:
        return self.cursor.total_pages(len(self.catalog))

    def visible_products(self) -> List[Product]:
        return self.cursor.visible_slice(self.catalog.products)

    def next_page(self) -> bool:
        with self._lock:
            return self.cursor.next_page(len(self.catalog))

    def prev_page(self) -> bool:
        with self._lock:
            return self.cursor.prev_page()
