"""
S3 storage for rendered reports.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import ArtifactStoreError

logger = logging.getLogger(__name__)


class S3ArtifactStore:
    """
    Artifact Store writing PDFs to S3 behind a public (CloudFront) URL.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = 'cost-reports',
        base_url: str = '',
        region: str = 'us-east-1',
        s3_client=None
    ):
        """
        Initialize artifact store.

        Args:
            bucket: Bucket name
            prefix: Key prefix for reports
            base_url: Public base URL of the bucket; the virtual-hosted S3
                URL is used when empty
            region: AWS region
            s3_client: Optional boto3 S3 client (for testing)
        """
        self.bucket = bucket
        self.prefix = prefix.strip('/')
        self.base_url = (base_url or f'https://{bucket}.s3.amazonaws.com').rstrip('/')
        self.client = s3_client or boto3.client('s3', region_name=region)

    @staticmethod
    def new_name() -> str:
        stamp = datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%S')
        return f'cost-report-{stamp}-{uuid.uuid4().hex[:8]}'

    def put(self, artifact: bytes, name: Optional[str] = None) -> str:
        """
        Store a PDF and return its public URL.

        Args:
            artifact: PDF bytes
            name: Object name without extension (generated when omitted)

        Returns:
            Public URL of the object

        Raises:
            ArtifactStoreError: If the upload fails
        """
        name = name or self.new_name()
        key = f'{self.prefix}/{name}.pdf' if self.prefix else f'{name}.pdf'

        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=artifact,
                ContentType='application/pdf'
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error uploading report to s3://{self.bucket}/{key}: {e}")
            raise ArtifactStoreError(f"Failed to store report: {e}") from e

        logger.info(f"Stored report at s3://{self.bucket}/{key}")
        return f'{self.base_url}/{key}'
