# listing_gallery/services/extraction_service.py
import json
import logging
import threading
from concurrent.futures import CancelledError, Future, TimeoutError as FutureTimeoutError
from typing import List, Optional

from google import genai
from google.genai import types

from models.exceptions import ExtractionError
from models.product import (
    DESCRIPTION_PLACEHOLDER,
    MAX_IMAGES_PER_PRODUCT,
    PRICE_PLACEHOLDER,
    TITLE_PLACEHOLDER,
    ExtractionResult,
    unique_in_order,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"


def build_prompt(url: str, target_language: str = "Arabic") -> str:
    return f"""
    Analyze this product URL: {url}

    I need a JSON response with the following fields.
    **IMPORTANT: Translate 'title' and 'description' to {target_language} if they are in another language.**

    - "title": The listing title in {target_language}.
    - "description": A summary of the item details (specs, condition) in {target_language}.
    - "price": The price with currency (e.g., 120,000 DH).
    - "images": An array of strings. Find up to {MAX_IMAGES_PER_PRODUCT} valid image URLs for this product.
    - "phoneNumber": Extract any visible phone number text (e.g., "0612345678"). Return null if not found.
    - "whatsapp": Extract any explicit WhatsApp link (e.g., wa.me/..., api.whatsapp.com/...). Return null if not found.

    Image instructions:
    1. Prefer the listing's own gallery images ('og:image', gallery tags, 'twitter:image').
    2. If no direct images are found in metadata, search for the listing title and return the top 3 image results.
    3. Ensure all URLs start with 'http'.

    Contact instructions:
    - Look for phone numbers in the title, description and any seller info section.
    - If there is a button link labelled "WhatsApp" or "Chat", put that link in the "whatsapp" field.

    Return ONLY raw JSON. No markdown.
    """


def strip_code_fences(text: str) -> str:
    return text.replace("```json", "").replace("```", "").strip()


def _text_field(value, default):
    if value is None or value == "" or isinstance(value, (dict, list)):
        return default
    return value if isinstance(value, str) else str(value)


def _optional_text(value) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = value if isinstance(value, str) else str(value)
    return text.strip() or None


def _normalize_images(parsed: dict) -> List[str]:
    images = parsed.get("images")
    if isinstance(images, list):
        candidates = images
    elif isinstance(parsed.get("imageUrl"), str):
        # Older answers used a single 'imageUrl' field
        candidates = [parsed["imageUrl"]]
    else:
        candidates = []
    valid = [url for url in candidates if isinstance(url, str) and url.startswith("http")]
    return valid[:MAX_IMAGES_PER_PRODUCT]


def normalize_extraction(text: Optional[str], sources: Optional[List[str]] = None) -> ExtractionResult:
    """
    Turns the model's raw answer into an ExtractionResult.

    Missing fields fall back to placeholders. An answer that is not a JSON object
    degrades to the all-placeholder record (no images, no sources) instead of failing.
    """
    cleaned = strip_code_fences(text or "{}") or "{}"
    try:
        parsed = json.loads(cleaned)
        if not isinstance(parsed, dict):
            raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
    except ValueError as e:
        logger.warning(f"Failed to parse JSON from Gemini ({e}): {text!r}")
        return ExtractionResult(degraded=True)

    return ExtractionResult(
        title=_text_field(parsed.get("title"), TITLE_PLACEHOLDER),
        description=_text_field(parsed.get("description"), DESCRIPTION_PLACEHOLDER),
        price=_text_field(parsed.get("price"), PRICE_PLACEHOLDER),
        images=_normalize_images(parsed),
        sources=unique_in_order(sources or []),
        phone_number=_optional_text(parsed.get("phoneNumber")),
        whatsapp=_optional_text(parsed.get("whatsapp")),
    )


def extract_grounding_sources(response) -> List[str]:
    """Collects the web URIs Google Search grounding attached to the first candidate."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []
    uris = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        if uri:
            uris.append(uri)
    return unique_in_order(uris)


class ExtractionTask:
    """
    Handle on one in-flight extraction.
    cancel() only succeeds before the call has started; a running call is left to finish.
    """

    def __init__(self, url: str, future):
        self.url = url
        self._future = future

    def done(self) -> bool:
        return self._future.done()

    def cancel(self) -> bool:
        return self._future.cancel()

    def result(self, timeout=None) -> ExtractionResult:
        try:
            return self._future.result(timeout=timeout)
        except FutureTimeoutError as e:
            raise ExtractionError(f"Extraction of {self.url} timed out after {timeout}s") from e
        except CancelledError as e:
            raise ExtractionError(f"Extraction of {self.url} was cancelled") from e


class ExtractionClient:
    def __init__(self, api_key=None, model=DEFAULT_MODEL, target_language="Arabic", client=None):
        if client is None:
            if not api_key:
                raise ValueError("Gemini API key is required.")
            client = genai.Client(api_key=api_key)
        self.client = client
        self.model = model
        self.target_language = target_language

    def extract(self, url: str) -> ExtractionResult:
        """
        Asks Gemini (with Google Search grounding) for the listing's details.

        :param url: A listing URL already validated by the caller.
        :return: The normalized ExtractionResult.
        :raises ExtractionError: on any API or transport failure. There is no retry.
        """
        logger.info(f"Requesting product extraction for {url} with {self.model}")
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=build_prompt(url, self.target_language),
                config=types.GenerateContentConfig(
                    tools=[types.Tool(google_search=types.GoogleSearch())],
                ),
            )
            text = response.text
            sources = extract_grounding_sources(response)
        except Exception as e:
            logger.error(f"Gemini API Error: {e}")
            raise ExtractionError(f"Could not extract product details: {e}") from e

        result = normalize_extraction(text, sources)
        if result.degraded:
            logger.warning(f"Extraction for {url} degraded to placeholder fields.")
        else:
            logger.info(f"Extracted '{result.title}' with {len(result.images)} image(s) and {len(result.sources)} source(s).")
        return result

    def submit(self, url: str) -> ExtractionTask:
        """
        Starts the extraction on its own daemon thread.
        A call that hangs past its caller's timeout never delays later submissions.
        """
        future = Future()

        def run():
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self.extract(url))
            except Exception as e:
                future.set_exception(e)

        threading.Thread(target=run, name=f"extraction-{url[-40:]}", daemon=True).start()
        return ExtractionTask(url, future)
