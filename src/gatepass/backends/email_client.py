import logging
from typing import Dict, List, Optional, Tuple

from mailgun.client import Client

from gatepass.errors import NotificationDeliveryError

logger = logging.getLogger(__name__)


class EmailClient:
    def __init__(self, config: dict):
        self.mailgun_api_key = config["mailgun_api_key"]
        self.domain = config["mailgun_domain"]
        self.sender_email = config["sender_email"]

        self.client = Client(auth=("api", self.mailgun_api_key))

    async def send_email(
        self,
        to: str,
        html: str,
        subject: str,
        inline: Optional[List[Tuple[str, bytes]]] = None,
    ) -> Dict:
        """
        Send email using Mailgun API

        Args:
            to: Recipient email address
            html: Email body as HTML
            subject: Email subject
            inline: Optional (filename, content) pairs attached inline and
                referenced from the body as ``cid:<filename>``

        Returns:
            Dict containing Mailgun API response

        Raises:
            NotificationDeliveryError: If email sending fails
        """
        data = {
            "from": self.sender_email,
            "to": to,
            "subject": subject,
            "html": html,
            "o:tag": "registration-qr",
        }
        files = [("inline", (name, content)) for name, content in inline or []]

        try:
            req = self.client.messages.create(
                data=data, files=files or None, domain=self.domain
            )
            response = req.json()

            # Check if request was successful
            if req.status_code != 200:
                logger.error(f"Mailgun API error: {req.status_code} - {response}")
                raise NotificationDeliveryError(f"Failed to send email: {response}")

            logger.info(
                f"Email sent successfully to {to}: {response.get('id', 'unknown')}"
            )
            return response

        except NotificationDeliveryError:
            raise
        except Exception as e:
            logger.error(f"Failed to send email to {to}: {str(e)}")
            raise NotificationDeliveryError(f"Email sending failed: {str(e)}") from e
