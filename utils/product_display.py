# listing_gallery/utils/product_display.py
import base64
import logging
import re
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


def whatsapp_link(product, country_code="212") -> Optional[str]:
    """
    An explicit WhatsApp link wins; otherwise one is derived from the phone number.
    Local numbers starting with 0 get the country code instead of the 0.
    """
    if product.whatsapp:
        return product.whatsapp
    if not product.phone_number:
        return None
    digits = re.sub(r'\D', '', product.phone_number)
    if not digits:
        return None
    if digits.startswith('0'):
        digits = country_code + digits[1:]
    return f"https://wa.me/{digits}"


def has_contact(product, country_code="212") -> bool:
    return bool(product.phone_number) or whatsapp_link(product, country_code) is not None


def source_hostname(url, fallback="original site") -> str:
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        hostname = None
    return hostname or fallback


def favicon_url(url) -> str:
    return f"https://www.google.com/s2/favicons?domain={source_hostname(url, 'google.com')}&sz=128"


# --- Image carousel index arithmetic ---
def display_index(current, count) -> int:
    return 0 if current >= count else current


def next_image_index(current, count) -> int:
    if count > 1:
        return (current + 1) % count
    return current


def prev_image_index(current, count) -> int:
    if count > 1:
        return (current - 1 + count) % count
    return current


def index_after_removal(removed_index, count_before) -> int:
    """Index to show after removing the image at removed_index from count_before images."""
    if removed_index >= count_before - 1:
        return max(0, count_before - 2)
    return removed_index


def index_after_add(current, count_before, count_after) -> int:
    # Jump to the first newly added image
    if count_after > count_before:
        return count_before
    return current


def files_to_data_urls(files):
    """Encodes uploaded image files as data URLs. Unreadable uploads are skipped."""
    data_urls = []
    for file in files:
        try:
            encoded = base64.b64encode(file.getvalue()).decode('ascii')
            data_urls.append(f"data:{file.type or 'image/jpeg'};base64,{encoded}")
        except Exception as e:
            logger.warning(f"Skipping unreadable upload {file.name}: {e}")
    return data_urls
