import logging
import requests

from config import NotificationConfig

logger = logging.getLogger(__name__)

RENEWAL_SUBJECT = "Subscription Renewal Reminder"


class DeliveryError(Exception):
    """The notification endpoint could not be reached or rejected the request."""


class NotificationSender:
    """
    Posts {email, subject, text} to the configured notification endpoint,
    which dispatches the actual email.
    """

    def __init__(self, config: NotificationConfig):
        self.url = config.url
        self.timeout = config.timeout

    def send(self, email: str, subject: str, text: str) -> None:
        if not self.url:
            raise DeliveryError("Notification URL is missing. Set NOTIFICATION_URL env var.")

        payload = {
            "email": email,
            "subject": subject,
            "text": text,
        }
        headers = {
            "accept": "application/json",
            "content-type": "application/json",
        }

        try:
            response = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise DeliveryError(f"Network error sending to {email}: {str(e)}") from e

        if not 200 <= response.status_code < 300:
            raise DeliveryError(
                f"Notification endpoint error for {email}: {response.status_code} - {response.text}"
            )
        logger.info(f"Notification sent to {email}: {subject}")
