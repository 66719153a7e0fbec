"""Email service for delivering registration QR codes"""

import logging
from html import escape
from typing import Dict, Optional

from gatepass.backends.email_client import EmailClient
from gatepass.backends.qr_renderer import data_url_to_png

logger = logging.getLogger(__name__)

QR_INLINE_NAME = "qrcode.png"

SUPPORTED_LANGUAGES = ("en", "ar")

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "en": {
        "subject": "Registration Confirmation - {title}",
        "heading": "Registration Successful!",
        "thanks": "Thank you for registering for {title}.",
        "instructions": "Please find your QR code below. Present this at the event entrance.",
        "dir": "ltr",
    },
    "ar": {
        "subject": "تأكيد التسجيل - {title}",
        "heading": "تم التسجيل بنجاح!",
        "thanks": "شكراً لتسجيلك في {title}.",
        "instructions": "يرجى العثور على رمز QR أدناه. قدمه عند مدخل الفعالية.",
        "dir": "rtl",
    },
}


def normalize_language(language: Optional[str]) -> str:
    """Map a requested language onto one we have copy for (default English)"""
    if not language:
        return "en"
    language = language.strip().lower()[:2]
    return language if language in SUPPORTED_LANGUAGES else "en"


class EmailService:
    """Service for sending registration confirmation emails"""

    def __init__(self, email_config: dict, email_client: Optional[EmailClient] = None):
        self.email_client = email_client or EmailClient(email_config)

    def build_registration_email(
        self, event_title: str, language: str = "en"
    ) -> Dict[str, str]:
        """Build subject and HTML body; the QR image is referenced by cid"""
        copy = TRANSLATIONS[normalize_language(language)]
        title = escape(event_title)

        subject = copy["subject"].format(title=event_title)
        html = f"""<div dir="{copy['dir']}" style="font-family: Arial, sans-serif;">
<h2>{copy['heading']}</h2>
<p>{copy['thanks'].format(title=title)}</p>
<p>{copy['instructions']}</p>
<img src="cid:{QR_INLINE_NAME}" alt="QR Code" style="max-width: 250px;" />
</div>"""
        return {"subject": subject, "html": html}

    async def send_registration_qr(
        self,
        email: str,
        qr_image: str,
        event_title: str,
        language: str = "en",
    ) -> bool:
        """
        Deliver a registrant's QR code.

        Args:
            email: Recipient address
            qr_image: PNG data URL of the rendered token payload
            event_title: Title shown in the subject and body
            language: "en" or "ar"; anything else falls back to English

        Returns:
            bool: True if the email was accepted by the provider, False otherwise
        """
        if not email:
            logger.info("No email provided, skipping QR delivery")
            return False

        try:
            content = self.build_registration_email(event_title, language)
            await self.email_client.send_email(
                to=email,
                html=content["html"],
                subject=content["subject"],
                inline=[(QR_INLINE_NAME, data_url_to_png(qr_image))],
            )
            logger.info(f"QR email sent successfully to {email}")
            return True
        except Exception as e:
            logger.warning(f"Failed to deliver QR email to {email}: {e}")
            return False
