"""Receipt extraction workflow orchestration."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from billshare.domain.bill import ExtractedItem
from billshare.runtime import get_logger
from billshare.runtime.extraction_service import ExtractionFailed, call_extraction_service
from billshare.runtime.throttle import ExtractionThrottled

if TYPE_CHECKING:
    from billshare.application.session import BillSession

logger = get_logger(__name__)

ExtractionStatus = Literal[
    "extracted",
    "appended",
    "throttled",
    "failed",
]

Extractor = Callable[..., list[ExtractedItem]]


@dataclass(frozen=True)
class ReceiptExtractionRequest:
    """Inputs for running receipt extraction."""

    image_bytes: bytes
    filename: str = "receipt.jpg"
    # False: first receipt, replaces the bill. True: adds to the current bill.
    append: bool = False
    extractor: Extractor | None = None


@dataclass(frozen=True)
class ReceiptExtractionResult:
    """Outcome from receipt extraction."""

    status: ExtractionStatus
    items_added: int = 0
    error: str | None = None


def _acquire(session: BillSession) -> ReceiptExtractionResult | None:
    try:
        session.throttle.acquire(session.language)
    except ExtractionThrottled as exc:
        logger.warning("Extraction refused: %s", exc)
        session.flash_error(str(exc))
        return ReceiptExtractionResult(status="throttled", error=str(exc))
    return None


def _extract(session: BillSession, request: ReceiptExtractionRequest) -> list[ExtractedItem]:
    extractor = request.extractor if request.extractor is not None else call_extraction_service
    return extractor(
        request.image_bytes,
        session.settings.extraction_url,
        filename=request.filename,
        language=session.language,
        timeout=session.settings.extraction_timeout,
    )


def _merge(
    session: BillSession, request: ReceiptExtractionRequest, extracted: list[ExtractedItem]
) -> ReceiptExtractionResult:
    if request.append:
        added = session.append_extracted(extracted)
        return ReceiptExtractionResult(status="appended", items_added=added)
    added = session.load_extracted(extracted)
    return ReceiptExtractionResult(status="extracted", items_added=added)


def run_receipt_extraction(session: BillSession, request: ReceiptExtractionRequest) -> ReceiptExtractionResult:
    """Run extraction flow: throttle -> extract -> merge into the session.

    On any failure the bill is left exactly as it was and the message is
    flashed on the session.
    """
    refused = _acquire(session)
    if refused is not None:
        return refused

    try:
        extracted = _extract(session, request)
    except ExtractionFailed as exc:
        session.flash_error(str(exc))
        return ReceiptExtractionResult(status="failed", error=str(exc))

    return _merge(session, request, extracted)


async def run_receipt_extraction_async(
    session: BillSession, request: ReceiptExtractionRequest
) -> ReceiptExtractionResult:
    """Same flow as run_receipt_extraction, with the service call off the event loop.

    The merge still happens on the loop, so the session is only ever mutated
    from one thread.
    """
    refused = _acquire(session)
    if refused is not None:
        return refused

    try:
        extracted = await asyncio.to_thread(_extract, session, request)
    except ExtractionFailed as exc:
        session.flash_error(str(exc))
        return ReceiptExtractionResult(status="failed", error=str(exc))

    return _merge(session, request, extracted)
