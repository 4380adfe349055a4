"""
Amazon Bedrock client for the Nova text models.
"""
import json
import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..data_access.exceptions import RetryableError
from ..exceptions import NarrativeGenerationError
from ..utils.retry import retry_operation

logger = logging.getLogger(__name__)

FALLBACK_TEXT = 'Could not generate summary report.'

THROTTLING_ERROR_CODES = {
    'ThrottlingException',
    'ServiceUnavailableException',
    'ModelNotReadyException',
    'InternalServerException',
}


class BedrockClient:
    """
    Handles interaction with the Bedrock runtime messages API.

    Transport failures raise NarrativeGenerationError. A reply that cannot
    be parsed degrades to FALLBACK_TEXT instead of raising.
    """

    def __init__(
        self,
        model_id: str,
        region: str = 'us-east-1',
        runtime_client=None,
        max_tokens: int = 4096,
        temperature: float = 0.3,
        max_retries: int = 2
    ):
        """
        Initialize Bedrock client.

        Args:
            model_id: Bedrock model or inference profile identifier
            region: AWS region
            runtime_client: Optional boto3 bedrock-runtime client (for testing)
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature
            max_retries: Retries for throttled invocations
        """
        self.client = runtime_client or boto3.client('bedrock-runtime', region_name=region)
        self.model_id = model_id
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_retries = max_retries
        logger.info(f"Initialized Bedrock client with model: {model_id}")

    def invoke(self, prompt: str, temperature: Optional[float] = None) -> str:
        """
        Send a single user message and return the reply text.

        Args:
            prompt: Prompt text
            temperature: Optional override of the sampling temperature

        Returns:
            Reply text, or FALLBACK_TEXT if the reply is malformed

        Raises:
            NarrativeGenerationError: If the model cannot be invoked
        """
        body = {
            'messages': [
                {
                    'role': 'user',
                    'content': [{'text': prompt}],
                }
            ],
            'inferenceConfig': {
                'maxTokens': self.max_tokens,
                'temperature': self.temperature if temperature is None else temperature,
            },
        }

        def attempt():
            try:
                return self.client.invoke_model(
                    modelId=self.model_id,
                    contentType='application/json',
                    accept='application/json',
                    body=json.dumps(body)
                )
            except ClientError as e:
                code = e.response.get('Error', {}).get('Code', '')
                if code in THROTTLING_ERROR_CODES:
                    raise RetryableError(f"Bedrock throttled: {code}") from e
                raise NarrativeGenerationError(f"Bedrock invocation failed: {e}") from e
            except BotoCoreError as e:
                raise NarrativeGenerationError(f"Bedrock invocation failed: {e}") from e

        try:
            response = retry_operation(attempt, max_retries=self.max_retries)
        except RetryableError as e:
            raise NarrativeGenerationError(f"Bedrock unavailable: {e}") from e

        return self._extract_text(response)

    def _extract_text(self, response) -> str:
        try:
            payload = json.loads(response['body'].read())
            text = payload['output']['message']['content'][0]['text']
            if not isinstance(text, str):
                raise TypeError('reply text is not a string')
            return text
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Failed to parse Bedrock output: {e}")
            return FALLBACK_TEXT
