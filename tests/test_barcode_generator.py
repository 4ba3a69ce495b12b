"""Tests for services.barcode_generator."""

from __future__ import annotations

from pathlib import Path

import pytest

from services.barcode_generator import generate_barcode_image, save_barcode_image


class TestGenerateBarcodeImage:
    def test_returns_png_bytes(self) -> None:
        result = generate_barcode_image("DRBLFLMD25101701")
        assert isinstance(result, bytes)
        # PNG magic bytes
        assert result[:4] == b"\x89PNG"

    def test_different_skus_different_images(self) -> None:
        img1 = generate_barcode_image("DRBLFLMD25101701")
        img2 = generate_barcode_image("DRBLFLMD25101702")
        assert img1 != img2

    def test_empty_sku(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            generate_barcode_image("")


class TestSaveBarcodeImage:
    def test_writes_png(self, tmp_path: Path) -> None:
        path = save_barcode_image("DRBLFLMD25101701", str(tmp_path / "out"))
        assert path.endswith("DRBLFLMD25101701.png")
        assert Path(path).read_bytes()[:4] == b"\x89PNG"
