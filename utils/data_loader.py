# listing_gallery/utils/data_loader.py
import logging

import streamlit as st

from connectors.storage_connector import BaserowBlobStore, LocalBlobStore, ProductRepository
from services.catalog_service import CatalogStore
from services.extraction_service import ExtractionClient
from services.gallery_app import GalleryApp

logger = logging.getLogger(__name__)


@st.cache_resource
def get_extraction_client(api_key, model, target_language):
    """One Gemini client for every browser session of this server process."""
    return ExtractionClient(api_key=api_key, model=model, target_language=target_language)


def build_blob_store(config):
    storage_config = config.get('storage', {})
    backend = storage_config.get('backend', 'local')
    if backend == 'baserow':
        baserow_config = config.get('baserow', {})
        if not all([baserow_config.get('api_token'), baserow_config.get('base_url'), baserow_config.get('table_id')]):
            raise ValueError("Baserow storage needs 'api_token', 'base_url' and 'table_id'.")
        return BaserowBlobStore(
            api_token=baserow_config['api_token'],
            base_url=baserow_config['base_url'],
            table_id=baserow_config['table_id'],
        )
    if backend != 'local':
        raise ValueError(f"Unknown storage backend '{backend}'.")
    return LocalBlobStore(storage_config.get('path', 'data'))


def build_gallery_app(config, extraction_client=None):
    """
    Wires the storage backend, the Gemini client and the session state from config.
    :raises ValueError: if the config is incomplete.
    """
    if "error" in config:
        raise ValueError(config['error'])

    repository = ProductRepository(build_blob_store(config), key=config['storage']['key'])

    extraction_config = config.get('extraction', {})
    if extraction_client is None:
        extraction_client = get_extraction_client(
            extraction_config.get('api_key'),
            extraction_config.get('model'),
            extraction_config.get('target_language', 'Arabic'),
        )

    gallery_config = config.get('gallery', {})
    app = GalleryApp(
        CatalogStore(repository),
        extraction_client,
        supported_domain=gallery_config.get('supported_domain', 'avito.ma'),
        messages=config.get('messages'),
        extraction_timeout=extraction_config.get('timeout_seconds'),
    )
    app.on_viewport_change(gallery_config.get('default_viewport_width', 1280))
    logger.info(f"Gallery ready with {len(app.catalog)} products ({config['storage'].get('backend')} storage).")
    return app


def get_session_gallery_app(config):
    """Returns this browser session's GalleryApp, building it on first use."""
    if 'gallery_app' not in st.session_state:
        st.session_state.gallery_app = build_gallery_app(config)
        st.session_state.image_index = {}
    return st.session_state.gallery_app
