"""
StreetPaws Backend — QR Tag Tests
===================================

What:  PNG generation parameters, the never-raise placeholder contract and
       the printable tag page.
"""

import base64
from io import BytesIO
from unittest.mock import patch

import pytest
import qrcode
from PIL import Image
from qrcode.constants import ERROR_CORRECT_L, ERROR_CORRECT_M

from streetpaws.services.qr_service import QRImage, QRService, qr_payload

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def service():
    return QRService()


class TestPayload:

    def test_payload_is_profile_url(self):
        assert qr_payload("SP-2024-000007") == "http://streetpaws.test/animal/SP-2024-000007"


class TestGenerate:

    def test_png_is_square_black_on_white(self, service):
        image = service.generate_qr(qr_payload("SP-2024-000001"))

        assert image.media_type == "image/png"
        assert image.is_placeholder is False
        assert image.data.startswith(PNG_MAGIC)

        with Image.open(BytesIO(image.data)) as decoded:
            width, height = decoded.size
            assert width == height
            colors = {c for _, c in decoded.convert("L").getcolors()}
        assert colors == {0, 255}

    def test_one_module_border(self, service):
        image = service.generate_qr("SP-2024-000001")
        with Image.open(BytesIO(image.data)) as decoded:
            gray = decoded.convert("L")
            # Quiet zone is one 10px module: white at (5, 5), finder pattern black at (15, 15)
            assert gray.getpixel((5, 5)) == 255
            assert gray.getpixel((15, 15)) == 0

    def test_same_payload_same_image(self, service):
        payload = qr_payload("SP-2024-000123")
        assert service.generate_qr(payload).data == service.generate_qr(payload).data

    def test_data_url(self, service):
        image = service.generate_qr("SP-2024-000001")
        prefix = "data:image/png;base64,"
        assert image.data_url.startswith(prefix)
        assert base64.b64decode(image.data_url[len(prefix):]) == image.data


def _read_modules(png: bytes, box_size: int = 10):
    """Sample the centre pixel of every module; True is dark."""
    with Image.open(BytesIO(png)) as decoded:
        gray = decoded.convert("L")
        width, _ = gray.size
        count = width // box_size
        half = box_size // 2
        return [
            [gray.getpixel((col * box_size + half, row * box_size + half)) < 128 for col in range(count)]
            for row in range(count)
        ]


def _reference_matrix(payload: str, level: int):
    qr = qrcode.QRCode(error_correction=level, border=1)
    qr.add_data(payload)
    qr.make(fit=True)
    return qr.get_matrix()


class TestEncodedContent:

    @pytest.mark.parametrize(
        "payload",
        [
            qr_payload("SP-2024-000001"),
            qr_payload("SP-2031-123456"),
            "https://streetpaws.example.org/animal/SP-2024-000042?ref=tag",
        ],
    )
    def test_modules_encode_payload_at_level_m(self, service, payload):
        modules = _read_modules(service.generate_qr(payload).data)
        assert modules == _reference_matrix(payload, ERROR_CORRECT_M)

    def test_other_level_would_differ(self, service):
        payload = qr_payload("SP-2024-000001")
        modules = _read_modules(service.generate_qr(payload).data)
        assert modules != _reference_matrix(payload, ERROR_CORRECT_L)

    def test_format_information_reads_level_m(self, service):
        modules = _read_modules(service.generate_qr(qr_payload("SP-2024-000005")).data)
        # Drop the one-module quiet zone
        symbol = [row[1:-1] for row in modules[1:-1]]
        count = len(symbol)

        # Level M (00) masked with 10101... leaves dark, light in the top two format bits
        assert (symbol[8][0], symbol[8][1]) == (True, False)
        assert (symbol[count - 1][8], symbol[count - 2][8]) == (True, False)

    def test_different_payloads_differ(self, service):
        first = _read_modules(service.generate_qr(qr_payload("SP-2024-000001")).data)
        second = _read_modules(service.generate_qr(qr_payload("SP-2024-000002")).data)
        assert first != second


class TestPlaceholder:

    @pytest.mark.parametrize("payload", ["", "   "])
    def test_empty_payload(self, service, payload):
        image = service.generate_qr(payload)
        assert image.is_placeholder
        assert image.media_type == "image/svg+xml"
        assert b"QR Code Error" in image.data

    def test_payload_over_capacity(self, service):
        payload = "x" * 5000
        image = service.generate_qr(payload)
        assert image.is_placeholder
        assert ("x" * 30).encode() in image.data
        assert ("x" * 31).encode() not in image.data

    def test_encoder_exception(self, service):
        with patch("streetpaws.services.qr_service.qrcode.QRCode.make", side_effect=RuntimeError("boom")):
            image = service.generate_qr("SP-2024-000001")
        assert image.is_placeholder
        assert b"SP-2024-000001" in image.data

    def test_placeholder_escapes_markup(self, service):
        image = service.placeholder("<script>alert(1)</script>")
        assert b"<script>" not in image.data
        assert b"&lt;script&gt;" in image.data

    def test_placeholder_dimensions(self, service):
        svg = service.placeholder("anything").data.decode()
        assert 'width="200"' in svg and 'height="200"' in svg

    def test_failure_is_logged(self, service, caplog):
        service.generate_qr("")
        assert "QR generation failed" in caplog.text


class TestPrintTag:

    def test_layout_and_print_trigger(self, service):
        image = service.generate_qr("SP-2024-000009")
        html = service.render_print_tag("SP-2024-000009", image)

        assert "size: 4in 3in" in html
        assert "SP-2024-000009" in html
        assert 'width="140" height="140"' in html
        assert image.data_url in html
        assert "window.print()" in html
        assert "setTimeout(printOnce, 1500)" in html
        assert "window.close()" in html

    def test_identifier_is_escaped(self, service):
        image = QRImage(media_type="image/png", data=b"\x89PNG")
        html = service.render_print_tag('<b onload="x">', image)
        assert '<b onload="x">' not in html
