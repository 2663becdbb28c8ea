# listing_gallery/services/catalog_service.py
import logging
from typing import List, Optional, Tuple

import pandas as pd

from models.product import Product

logger = logging.getLogger(__name__)


class CatalogStore:
    """
    The ordered list of published products, newest first.
    Every mutation re-saves the whole list through the repository.
    """

    def __init__(self, repository):
        self.repository = repository
        self._products: List[Product] = []

    def load_initial(self) -> List[Product]:
        self._products = list(self.repository.load())
        return list(self._products)

    @property
    def products(self) -> Tuple[Product, ...]:
        return tuple(self._products)

    def __len__(self):
        return len(self._products)

    def ids(self):
        return [p.id for p in self._products]

    def get(self, product_id) -> Optional[Product]:
        return next((p for p in self._products if p.id == product_id), None)

    def publish(self, product: Product):
        if self.get(product.id) is not None:
            raise ValueError(f"Product id {product.id} is already in the catalog.")
        self._products.insert(0, product)
        self._persist()

    def remove(self, product_id) -> bool:
        index = next((i for i, p in enumerate(self._products) if p.id == product_id), None)
        if index is not None:
            del self._products[index]
        else:
            logger.info(f"Product {product_id} not found in catalog; nothing removed.")
        self._persist()
        return index is not None

    def _persist(self):
        if not self.repository.save(self._products):
            logger.warning("Catalog kept in memory only; storage save failed.")


def catalog_to_dataframe(products) -> pd.DataFrame:
    """Flattens products into one row each, for the tabular manager view."""
    columns = ['id', 'Title', 'Price', 'Images', 'Phone', 'WhatsApp', 'URL']
    rows = [
        {
            'id': p.id,
            'Title': p.title,
            'Price': p.price,
            'Images': len(p.images),
            'Phone': p.phone_number or "",
            'WhatsApp': p.whatsapp or "",
            'URL': p.original_url,
        }
        for p in products
    ]
    return pd.DataFrame(rows, columns=columns)
