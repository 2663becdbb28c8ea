"""
pytest configuration and shared fixtures for the listing gallery tests.
"""

import json
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from connectors.storage_connector import ProductRepository  # noqa: E402
from models.exceptions import PersistenceReadError, PersistenceWriteError  # noqa: E402
from models.product import Product  # noqa: E402
from services.catalog_service import CatalogStore  # noqa: E402
from services.extraction_service import ExtractionClient  # noqa: E402
from services.gallery_app import GalleryApp  # noqa: E402


class MemoryBlobStore:
    """In-memory stand-in for a blob store, with switchable failures."""

    def __init__(self, initial=None):
        self.data = dict(initial or {})
        self.fail_reads = False
        self.fail_writes = False
        self.writes = 0

    def get(self, key):
        if self.fail_reads:
            raise PersistenceReadError("read failed")
        return self.data.get(key)

    def set(self, key, value):
        if self.fail_writes:
            raise PersistenceWriteError("write failed")
        self.writes += 1
        self.data[key] = value


def make_product(product_id="1", **overrides):
    fields = dict(
        id=product_id,
        original_url=f"https://www.avito.ma/fr/casablanca/voitures/{product_id}.htm",
        title=f"Listing {product_id}",
        description="Good condition",
        images=[f"https://content.avito.st/{product_id}.jpg"],
        price="120,000 DH",
    )
    fields.update(overrides)
    return Product(**fields)


def gemini_response(text, uris=()):
    """Shape of a google-genai GenerateContentResponse, as far as the client reads it."""
    chunks = [SimpleNamespace(web=SimpleNamespace(uri=uri)) for uri in uris]
    candidate = SimpleNamespace(grounding_metadata=SimpleNamespace(grounding_chunks=chunks))
    return SimpleNamespace(text=text, candidates=[candidate])


@pytest.fixture
def blob_store():
    return MemoryBlobStore()


@pytest.fixture
def repository(blob_store):
    return ProductRepository(blob_store, key="test_products")


@pytest.fixture
def catalog(repository):
    store = CatalogStore(repository)
    store.load_initial()
    return store


@pytest.fixture
def genai_client():
    client = MagicMock()
    client.models.generate_content.return_value = gemini_response(
        json.dumps({
            "title": "Dacia Logan 2019",
            "description": "Diesel, first owner",
            "price": "95,000 DH",
            "images": ["https://content.avito.st/a.jpg", "https://content.avito.st/b.jpg"],
            "phoneNumber": "0612345678",
            "whatsapp": None,
        }),
        uris=["https://www.avito.ma/fr/item/1"],
    )
    return client


@pytest.fixture
def extraction_client(genai_client):
    return ExtractionClient(client=genai_client)


@pytest.fixture
def gallery(repository, extraction_client):
    return GalleryApp(CatalogStore(repository), extraction_client, supported_domain="avito.ma")
