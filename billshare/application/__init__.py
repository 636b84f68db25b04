"""Session workflows built on the pure domain operations."""

from billshare.application.extraction import (
    ReceiptExtractionRequest,
    ReceiptExtractionResult,
    run_receipt_extraction,
    run_receipt_extraction_async,
)
from billshare.application.random_pick import RandomPickTiming, run_random_assignment
from billshare.application.session import BillSession, ItemBusyError

__all__ = [
    "BillSession",
    "ItemBusyError",
    "RandomPickTiming",
    "run_random_assignment",
    "ReceiptExtractionRequest",
    "ReceiptExtractionResult",
    "run_receipt_extraction",
    "run_receipt_extraction_async",
]
