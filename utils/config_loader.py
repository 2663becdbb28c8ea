# listing_gallery/utils/config_loader.py
import copy
import logging
import os

import streamlit as st
import yaml

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

DEFAULT_CONFIG = {
    "gallery": {
        "supported_domain": "avito.ma",
        "whatsapp_country_code": "212",
        "default_viewport_width": 1280,
    },
    "extraction": {
        "model": "gemini-2.5-flash",
        "target_language": "Arabic",
        "timeout_seconds": None,
        "api_key": None,
    },
    "storage": {
        "backend": "local",
        "key": "my_awesome_products_db",
        "path": "data",
    },
    "baserow": {
        "base_url": "https://api.baserow.io",
        "api_token": None,
        "table_id": None,
    },
    "messages": {},
}


def _deep_merge(base, override):
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _gemini_key_from_secrets():
    try:
        return st.secrets.get("gemini", {}).get("api_key")
    except Exception:
        # No secrets.toml (standalone scripts, tests)
        logging.info("st.secrets not available. Falling back to environment variables.")
        return None


def read_config(path="settings.yaml", environ=None, secrets_api_key=None):
    """
    Reads the YAML settings, fills in defaults and applies environment overrides.
    Returns {"error": ...} when the file cannot be read.
    """
    environ = os.environ if environ is None else environ
    try:
        with open(path, 'r', encoding='utf-8') as f:
            file_config = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {"error": f"{path} not found."}
    except yaml.YAMLError as e:
        logging.error(f"Failed to parse {path}: {e}")
        return {"error": f"{path} is not valid YAML."}
    if not isinstance(file_config, dict):
        return {"error": f"{path} must contain a mapping of settings."}

    config = _deep_merge(DEFAULT_CONFIG, file_config)

    gemini_key = environ.get('GEMINI_API_KEY') or secrets_api_key
    if gemini_key:
        config['extraction']['api_key'] = gemini_key
        logging.info("Loaded Gemini API key from environment/secrets.")

    baserow_api_token_env = environ.get('BASEROW_API_TOKEN')
    if baserow_api_token_env:
        config['baserow']['api_token'] = baserow_api_token_env
        logging.info("Loaded Baserow API token from environment variable.")

    storage_path_env = environ.get('GALLERY_STORAGE_PATH')
    if storage_path_env:
        config['storage']['path'] = storage_path_env

    return config


@st.cache_data(show_spinner=False)
def load_app_config(path="settings.yaml"):
    """Loads config from YAML and merges secrets and environment settings."""
    return read_config(path, secrets_api_key=_gemini_key_from_secrets())


APP_CONFIG = load_app_config()
