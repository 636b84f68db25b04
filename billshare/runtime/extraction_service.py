"""HTTP client for the receipt extraction service."""

from __future__ import annotations

import time

import httpx

from billshare.domain.bill import ExtractedItem
from billshare.domain.messages import translate
from billshare.receipt.extracted_items import parse_extracted_items
from billshare.receipt.image_prep import UnreadableImage, prepare_image_bytes
from billshare.runtime.logging import get_logger

logger = get_logger(__name__)


class ExtractionError(RuntimeError):
    """Base class for extraction failures carrying a user-facing message."""


class ExtractionFailed(ExtractionError):
    """Raised when the extraction service fails or returns malformed data."""


def call_extraction_service(
    image_bytes: bytes,
    extraction_url: str,
    filename: str = "receipt.jpg",
    language: str = "en",
    timeout: float = 60.0,
    client: httpx.Client | None = None,
) -> list[ExtractedItem]:
    """
    Send a receipt image to the extraction service and return its line items.

    Args:
        image_bytes: Raw image bytes as uploaded by the user
        extraction_url: Base URL of the service; ``/extract`` is appended
        filename: Name reported in the multipart upload
        language: Language for the error message
        timeout: Request timeout in seconds
        client: Optional httpx client (tests pass one with a mock transport)

    Returns:
        Extracted items, possibly empty.

    Raises:
        ExtractionFailed: With a localized, user-facing message.
    """
    extraction_url = extraction_url.rstrip("/")
    logger.info("Sending receipt to extraction service at %s...", extraction_url)

    try:
        prepared = prepare_image_bytes(image_bytes)
    except UnreadableImage as e:
        logger.error("Could not read receipt image %s: %s", filename, e)
        raise ExtractionFailed(translate(language, "extraction_generic")) from e

    files = {"file": (filename, prepared, "image/jpeg")}
    data = {"language": language}

    try:
        start_time = time.time()
        if client is None:
            response = httpx.post(f"{extraction_url}/extract", files=files, data=data, timeout=timeout)
        else:
            response = client.post(f"{extraction_url}/extract", files=files, data=data, timeout=timeout)
        logger.info("Extraction service returned in %.2f seconds", time.time() - start_time)
    except httpx.RequestError as e:
        logger.error("Failed to connect to extraction service: %s", e)
        raise ExtractionFailed(translate(language, "extraction_generic")) from e

    if response.status_code == 503:
        logger.error("Extraction service overloaded: %s", response.status_code)
        raise ExtractionFailed(translate(language, "extraction_overloaded"))

    if response.status_code != 200:
        logger.error("Extraction service error: %s", response.status_code)
        raise ExtractionFailed(translate(language, "extraction_generic"))

    try:
        items = parse_extracted_items(response.json())
    except ValueError as e:
        # Covers both JSON decode errors and MalformedExtraction
        logger.error("Malformed extraction response: %s", e)
        raise ExtractionFailed(translate(language, "extraction_generic")) from e

    logger.info("Extracted %d items from %s", len(items), filename)
    return items
