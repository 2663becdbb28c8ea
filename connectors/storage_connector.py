# listing_gallery/connectors/storage_connector.py
import json
import logging
import os
import tempfile
from typing import List, Optional

import requests

from models.exceptions import PersistenceReadError, PersistenceWriteError
from models.product import Product

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "my_awesome_products_db"


class LocalBlobStore:
    """Key/value blob store keeping one JSON file per key inside a directory."""

    def __init__(self, directory):
        self.directory = directory

    def _path_for(self, key):
        safe_key = "".join(c if c.isalnum() or c in "-_." else "_" for c in key)
        return os.path.join(self.directory, f"{safe_key}.json")

    def get(self, key) -> Optional[str]:
        path = self._path_for(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise PersistenceReadError(f"Could not read '{path}': {e}") from e

    def set(self, key, value: str):
        path = self._path_for(key)
        tmp_path = None
        try:
            os.makedirs(self.directory, exist_ok=True)
            # Write to a temp file first so a crash never leaves half a catalog behind
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise PersistenceWriteError(f"Could not write '{path}': {e}") from e


class BaserowBlobStore:
    """
    Key/value blob store backed by a Baserow table.
    The table needs two text fields: 'Key' and 'Value'. Each key is one row.
    """

    def __init__(self, api_token, base_url, table_id, timeout=30):
        if not api_token:
            logger.error("Baserow API token is not provided.")
            raise ValueError("Baserow API token is required.")
        self.base_url = base_url.rstrip('/')
        self.table_id = table_id
        self.timeout = timeout
        self.headers = {"Authorization": f"Token {api_token}"}

    def _find_row(self, key):
        url = f"{self.base_url}/api/database/rows/table/{self.table_id}/"
        params = {"user_field_names": "true", "filter__Key__equal": key, "size": 1}
        response = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
        response.raise_for_status()
        results = response.json().get("results", [])
        return results[0] if results else None

    def get(self, key) -> Optional[str]:
        try:
            row = self._find_row(key)
        except requests.exceptions.RequestException as e:
            logger.error(f"Error reading key '{key}' from Baserow table {self.table_id}: {e}")
            raise PersistenceReadError(str(e)) from e
        if row is None:
            return None
        return row.get("Value")

    def set(self, key, value: str):
        try:
            row = self._find_row(key)
            if row is None:
                url = f"{self.base_url}/api/database/rows/table/{self.table_id}/?user_field_names=true"
                response = requests.post(url, headers=self.headers, json={"Key": key, "Value": value}, timeout=self.timeout)
            else:
                url = f"{self.base_url}/api/database/rows/table/{self.table_id}/{row['id']}/?user_field_names=true"
                response = requests.patch(url, headers=self.headers, json={"Value": value}, timeout=self.timeout)
            response.raise_for_status()
            logger.info(f"Successfully stored key '{key}' in Baserow table {self.table_id}.")
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to store key '{key}' in Baserow table {self.table_id}: {e}")
            raise PersistenceWriteError(str(e)) from e


class ProductRepository:
    """Loads and saves the whole catalog as one JSON array under a single key."""

    def __init__(self, store, key=DEFAULT_STORAGE_KEY):
        self.store = store
        self.key = key

    def load(self) -> List[Product]:
        """
        Returns the stored products, or an empty list on any failure.
        Rows that cannot be turned into a Product are skipped.
        """
        try:
            raw = self.store.get(self.key)
        except PersistenceReadError as e:
            logger.error(f"Failed to load products from storage: {e}")
            return []
        if not raw:
            return []

        try:
            rows = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Stored catalog under '{self.key}' is not valid JSON: {e}")
            return []
        if not isinstance(rows, list):
            logger.error(f"Stored catalog under '{self.key}' is not a list.")
            return []

        products = []
        for row in rows:
            try:
                products.append(Product.from_dict(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping corrupt product row: {e}")
        logger.info(f"Loaded {len(products)} products from storage.")
        return products

    def save(self, products) -> bool:
        """Overwrites the stored catalog. Returns False (and logs) on failure."""
        payload = json.dumps([p.to_dict() for p in products], ensure_ascii=False)
        try:
            self.store.set(self.key, payload)
        except PersistenceWriteError as e:
            logger.error(f"Failed to save products to storage: {e}")
            return False
        return True
