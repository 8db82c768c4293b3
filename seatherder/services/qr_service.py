"""
QR code generation service
"""

import io
import qrcode

from seatherder.core.config import settings

class QRService:
    """Service for generating check-in QR codes"""

    @staticmethod
    def scan_url(check_in_id: str) -> str:
        """URL a guest or table QR code points to"""
        return f"{settings.BASE_URL}/guest/scan/{check_in_id}"

    @staticmethod
    def portal_url(public_code: str) -> str:
        """URL of the event's guest portal"""
        return f"{settings.BASE_URL}/guest/portal?event={public_code}"

    @staticmethod
    def render_png(data: str, box_size: int = 10) -> bytes:
        """Render ``data`` as a PNG QR code"""
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=box_size,
            border=4,
        )
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()

    @staticmethod
    def generate_check_in_qr(check_in_id: str) -> bytes:
        """QR code for a guest's or a table's check-in token"""
        return QRService.render_png(QRService.scan_url(check_in_id))

    @staticmethod
    def generate_event_qr(public_code: str) -> bytes:
        """QR code for the event guest portal"""
        return QRService.render_png(QRService.portal_url(public_code))
