"""Pure helpers for the receipt extraction boundary."""

from billshare.receipt.extracted_items import MalformedExtraction, parse_extracted_items
from billshare.receipt.image_prep import MAX_IMAGE_DIMENSION, UnreadableImage, prepare_image_bytes

__all__ = [
    "MAX_IMAGE_DIMENSION",
    "MalformedExtraction",
    "UnreadableImage",
    "parse_extracted_items",
    "prepare_image_bytes",
]
