# listing_gallery/models/product.py
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

MAX_IMAGES_PER_PRODUCT = 10

TITLE_PLACEHOLDER = "title unavailable"
DESCRIPTION_PLACEHOLDER = ""
PRICE_PLACEHOLDER = "---"


def unique_in_order(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


@dataclass
class ExtractionResult:
    """Normalized output of one extraction call, before it becomes a Product."""
    title: str = TITLE_PLACEHOLDER
    description: str = DESCRIPTION_PLACEHOLDER
    price: str = PRICE_PLACEHOLDER
    images: List[str] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    phone_number: Optional[str] = None
    whatsapp: Optional[str] = None
    # True when the model's answer could not be parsed and placeholders were used
    degraded: bool = False


@dataclass
class Product:
    id: str
    original_url: str
    title: str
    description: str
    images: List[str] = field(default_factory=list)
    price: str = PRICE_PLACEHOLDER
    sources: List[str] = field(default_factory=list)
    phone_number: Optional[str] = None
    whatsapp: Optional[str] = None

    @classmethod
    def from_extraction(cls, product_id: str, url: str, result: ExtractionResult) -> "Product":
        return cls(
            id=product_id,
            original_url=url,
            title=result.title,
            description=result.description,
            images=list(result.images[:MAX_IMAGES_PER_PRODUCT]),
            price=result.price,
            sources=unique_in_order(result.sources),
            phone_number=result.phone_number,
            whatsapp=result.whatsapp,
        )

    def to_dict(self) -> dict:
        """
        Serializes the product with the camelCase keys used by the stored catalog.
        Optional contact fields are left out when they are not set.
        """
        data = {
            "id": self.id,
            "originalUrl": self.original_url,
            "title": self.title,
            "description": self.description,
            "images": list(self.images),
            "price": self.price,
            "sources": list(self.sources),
        }
        if self.phone_number is not None:
            data["phoneNumber"] = self.phone_number
        if self.whatsapp is not None:
            data["whatsapp"] = self.whatsapp
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        """
        Builds a product from a stored row.
        :raises KeyError: if the row has no 'id'.
        :raises TypeError: if the row is not a mapping.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected a product mapping, got {type(data).__name__}")
        images = data.get("images") or []
        if not isinstance(images, list):
            images = []
        sources = data.get("sources") or []
        if not isinstance(sources, list):
            sources = []
        return cls(
            id=str(data["id"]),
            original_url=data.get("originalUrl", ""),
            title=data.get("title", TITLE_PLACEHOLDER),
            description=data.get("description", DESCRIPTION_PLACEHOLDER),
            images=[img for img in images if isinstance(img, str)][:MAX_IMAGES_PER_PRODUCT],
            price=data.get("price", PRICE_PLACEHOLDER),
            sources=unique_in_order(src for src in sources if isinstance(src, str)),
            phone_number=data.get("phoneNumber") or None,
            whatsapp=data.get("whatsapp") or None,
        )


def generate_product_id(existing_ids: Iterable[str] = ()) -> str:
    """Millisecond timestamp id, bumped until it does not collide with existing_ids."""
    taken = set(existing_ids)
    candidate = int(time.time() * 1000)
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)
