"""QR rendering — PNG data URLs for upload links (qrcode + Pillow)."""

import base64
import io

import qrcode


def qr_data_url(content: str) -> str:
    """Render `content` as a black-on-white PNG QR code data URL."""
    qr = qrcode.QRCode(version=None, box_size=10, border=2)
    qr.add_data(content)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode()
    return f"data:image/png;base64,{encoded}"
