import base64
import logging
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_M

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:image/png;base64,"


class QRRenderer:
    def __init__(self, box_size: int = 10, border: int = 4):
        self.box_size = box_size
        self.border = border

    def render_png(self, payload: str) -> bytes:
        """
        Render a payload to a PNG QR code

        Args:
            payload: Text to encode (normally the canonical token payload)

        Returns:
            PNG image bytes
        """
        qr = qrcode.QRCode(
            error_correction=ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(payload)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffer = BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()

    def render(self, payload: str) -> str:
        """Render a payload to a ``data:image/png;base64`` URL"""
        png = self.render_png(payload)
        return DATA_URL_PREFIX + base64.b64encode(png).decode("ascii")


def data_url_to_png(data_url: str) -> bytes:
    """Decode a PNG data URL produced by :meth:`QRRenderer.render`"""
    if not data_url.startswith(DATA_URL_PREFIX):
        raise ValueError("Not a PNG data URL")
    return base64.b64decode(data_url[len(DATA_URL_PREFIX) :])
