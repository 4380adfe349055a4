"""
Email notifications through Amazon SES.
"""
import logging
from typing import Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import NotificationError

logger = logging.getLogger(__name__)

REPORT_SUBJECT = 'Your AWS Cost Report is ready'


def build_report_notification(report_url: str, summary: str) -> Tuple[str, str]:
    """
    Subject and body of the "report ready" email.

    Args:
        report_url: Public report URL
        summary: Narrative summary

    Returns:
        (subject, body)
    """
    body = (
        "Hello,\n\n"
        "Your AWS cost report is ready. Download it here:\n"
        f"{report_url}\n\n"
        "Summary:\n"
        f"{summary}\n"
    )
    return REPORT_SUBJECT, body


class SesNotificationChannel:
    """
    Notification Channel sending plain-text email with SES.
    """

    def __init__(self, sender: str, region: str = 'us-east-1', ses_client=None):
        """
        Args:
            sender: Verified sender address
            region: AWS region
            ses_client: Optional boto3 SES client (for testing)
        """
        self.sender = sender
        self.client = ses_client or boto3.client('ses', region_name=region)

    def send(self, address: str, subject: str, body: str) -> None:
        """
        Send an email.

        Raises:
            NotificationError: If SES rejects or cannot take the message
        """
        try:
            response = self.client.send_email(
                Source=self.sender,
                Destination={'ToAddresses': [address]},
                Message={
                    'Subject': {'Data': subject, 'Charset': 'UTF-8'},
                    'Body': {'Text': {'Data': body, 'Charset': 'UTF-8'}},
                }
            )
        except (ClientError, BotoCoreError) as e:
            raise NotificationError(f"Failed to email {address}: {e}") from e

        logger.info(f"Sent notification {response.get('MessageId')} to {address}")
