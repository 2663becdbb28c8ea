# listing_gallery/services/draft_service.py
import enum
import logging
from typing import Optional

from models.product import MAX_IMAGES_PER_PRODUCT, Product

logger = logging.getLogger(__name__)


class DraftState(enum.Enum):
    EMPTY = "empty"
    PENDING = "pending"


def clamp_image_index(index: int, count: int) -> Optional[int]:
    """Keeps a displayed-image index valid for `count` images; None means there is nothing to show."""
    if count <= 0:
        return None
    return min(max(index, 0), count - 1)


class DraftLifecycle:
    """Holds the single extracted-but-unpublished product while the user reviews it."""

    def __init__(self):
        self._draft: Optional[Product] = None

    @property
    def state(self) -> DraftState:
        return DraftState.PENDING if self._draft is not None else DraftState.EMPTY

    @property
    def product(self) -> Optional[Product]:
        return self._draft

    def start(self, product: Product):
        if self._draft is not None:
            raise ValueError("A draft is already pending; publish or cancel it first.")
        self._draft = product
        logger.info(f"Draft {product.id} created for {product.original_url}")

    def add_images(self, new_images) -> int:
        """
        Appends as many of new_images as fit under the image cap.
        Extra images are dropped. Returns how many were added.
        """
        if self._draft is None:
            return 0
        available_slots = MAX_IMAGES_PER_PRODUCT - len(self._draft.images)
        if available_slots <= 0:
            logger.info(f"Draft {self._draft.id} already has {MAX_IMAGES_PER_PRODUCT} images.")
            return 0
        images_to_add = list(new_images)[:available_slots]
        self._draft.images = self._draft.images + images_to_add
        return len(images_to_add)

    def remove_image_at(self, index: int) -> bool:
        if self._draft is None:
            return False
        if not 0 <= index < len(self._draft.images):
            logger.warning(f"Ignoring removal of image {index}; draft {self._draft.id} has {len(self._draft.images)} image(s).")
            return False
        images = list(self._draft.images)
        del images[index]
        self._draft.images = images
        return True

    def publish_to(self, catalog) -> Optional[Product]:
        if self._draft is None:
            return None
        product = self._draft
        catalog.publish(product)
        self._draft = None
        logger.info(f"Draft {product.id} published.")
        return product

    def cancel(self):
        if self._draft is not None:
            logger.info(f"Draft {self._draft.id} discarded.")
        self._draft = None
