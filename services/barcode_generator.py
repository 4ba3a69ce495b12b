"""Barcode rendering.

Generates Code128 barcode images for SKUs via python-barcode, for the
scanner view and for saving to disk from the CLI.
"""

from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path

import barcode
from barcode.writer import ImageWriter

logger = logging.getLogger(__name__)

_WRITER_OPTIONS = {
    "module_width": 0.3,
    "module_height": 8.0,
    "text_distance": 3.0,
    "font_size": 8,
    "quiet_zone": 2.0,
}


def generate_barcode_image(sku: str) -> bytes:
    """Generate a Code128 barcode as PNG bytes for the given SKU."""
    if not sku:
        msg = "SKU must not be empty"
        raise ValueError(msg)
    code128 = barcode.get("code128", sku, writer=ImageWriter())
    buffer = BytesIO()
    code128.write(buffer, options=_WRITER_OPTIONS)
    return buffer.getvalue()


def save_barcode_image(sku: str, output_dir: str) -> str:
    """Write ``<sku>.png`` into *output_dir* and return its path."""
    path = Path(output_dir) / f"{sku}.png"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(generate_barcode_image(sku))
    logger.info("Barcode saved to %s", path)
    return str(path)
