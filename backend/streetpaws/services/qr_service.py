"""
StreetPaws Backend — QR Identity Tags
=======================================

What:  Encodes an animal's profile URL as a QR image and renders the
       printable collar/kennel tag around it.
Who:   GET /api/animals/lookup/{animal_id}/qr and .../tag.

Encoding parameters:
    - Error correction M (recovers ~15% damage: scratched or faded tags)
    - 1-module quiet zone, black on white, PNG
    - Version chosen automatically (fit=True)

Failure Contract:
    generate_qr() never raises. Any encoder problem (empty payload, payload
    over QR capacity, Pillow error) is logged and a 200×200 SVG placeholder
    reading "QR Code Error" is returned instead, so a tag page never shows a
    broken image.

Read path:
    Nothing in the system decodes a QR code. A phone camera opens the
    embedded URL and the profile page resolves it through
    GET /api/animals/lookup/{animal_id}.
"""

import base64
import html
import logging
from dataclasses import dataclass
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from streetpaws.identity import profile_url
from streetpaws.templating import templates

logger = logging.getLogger(__name__)

PLACEHOLDER_SIZE = 200
PLACEHOLDER_TEXT_LIMIT = 30

# Printed tag: 4in × 3in page, 140px code
TAG_IMAGE_SIZE = 140
PRINT_FALLBACK_MS = 1500


@dataclass(frozen=True)
class QRImage:
    """Rendered code (or placeholder) ready to be served or inlined."""
    media_type: str
    data: bytes
    is_placeholder: bool = False

    @property
    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"


def qr_payload(animal_id: str) -> str:
    """The text encoded into an animal's tag: its absolute profile URL."""
    return profile_url(animal_id)


class QRService:
    """
    QR encoder with a placeholder fallback.

    Args:
        box_size: Pixels per module in the PNG.
        border:   Quiet zone in modules.
    """

    def __init__(self, box_size: int = 10, border: int = 1):
        self.box_size = box_size
        self.border = border

    def generate_qr(self, payload: str) -> QRImage:
        try:
            return QRImage(media_type="image/png", data=self._encode_png(payload))
        except Exception as e:
            logger.error(
                "QR generation failed for payload %r: %s",
                payload[:PLACEHOLDER_TEXT_LIMIT], str(e),
            )
            return self.placeholder(payload)

    def _encode_png(self, payload: str) -> bytes:
        if not payload or not payload.strip():
            raise ValueError("QR payload is empty")

        qr = qrcode.QRCode(
            version=None,
            error_correction=ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(payload)
        qr.make(fit=True)

        image = qr.make_image(fill_color="black", back_color="white")
        buffer = BytesIO()
        image.save(buffer)
        return buffer.getvalue()

    def placeholder(self, payload: str) -> QRImage:
        """Square SVG with an error caption and the start of the payload."""
        size = PLACEHOLDER_SIZE
        excerpt = html.escape(payload[:PLACEHOLDER_TEXT_LIMIT])
        svg = (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{size}" height="{size}" '
            f'viewBox="0 0 {size} {size}">'
            f'<rect width="{size}" height="{size}" fill="#f0f0f0" stroke="#ccc"/>'
            f'<text x="{size // 2}" y="{size // 2 - 10}" text-anchor="middle" '
            f'font-family="Arial, sans-serif" font-size="14" fill="#666">QR Code Error</text>'
            f'<text x="{size // 2}" y="{size // 2 + 10}" text-anchor="middle" '
            f'font-family="Arial, sans-serif" font-size="10" fill="#999">{excerpt}</text>'
            "</svg>"
        )
        return QRImage(media_type="image/svg+xml", data=svg.encode("utf-8"), is_placeholder=True)

    def render_print_tag(self, animal_id: str, image: QRImage) -> str:
        """
        Printable tag page.

        The page calls window.print() once the embedded image has loaded,
        or after PRINT_FALLBACK_MS if the load event never fires, and closes
        itself afterwards.
        """
        template = templates.get_template("print_tag.html")
        return template.render(
            animal_id=animal_id,
            image_src=image.data_url,
            image_size=TAG_IMAGE_SIZE,
            fallback_ms=PRINT_FALLBACK_MS,
        )


qr_service = QRService()
