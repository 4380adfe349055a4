"""
Unit tests for the Bedrock runtime client.
"""
import io
import json
from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError

from cost_reports.exceptions import NarrativeGenerationError
from cost_reports.services.bedrock_client import FALLBACK_TEXT, BedrockClient


def _client_error(code):
    return ClientError({'Error': {'Code': code, 'Message': f'{code} message'}}, 'InvokeModel')


@pytest.fixture(autouse=True)
def no_sleep():
    with patch('cost_reports.utils.retry.time.sleep'):
        yield


def _bedrock_response(payload):
    return {'body': io.BytesIO(json.dumps(payload).encode('utf-8'))}


class TestBedrockClient:
    """Test suite for BedrockClient."""

    def test_invoke_returns_text(self):
        runtime = Mock()
        runtime.invoke_model.return_value = _bedrock_response(
            {'output': {'message': {'content': [{'text': 'Report text'}]}}}
        )
        client = BedrockClient('model-x', runtime_client=runtime)

        assert client.invoke('prompt') == 'Report text'

        kwargs = runtime.invoke_model.call_args.kwargs
        body = json.loads(kwargs['body'])
        assert kwargs['modelId'] == 'model-x'
        assert body['messages'][0]['content'][0]['text'] == 'prompt'
        assert body['inferenceConfig']['temperature'] == 0.3

    def test_temperature_override(self):
        runtime = Mock()
        runtime.invoke_model.return_value = _bedrock_response(
            {'output': {'message': {'content': [{'text': '{}'}]}}}
        )
        client = BedrockClient('model-x', runtime_client=runtime)

        client.invoke('prompt', temperature=0.0)

        body = json.loads(runtime.invoke_model.call_args.kwargs['body'])
        assert body['inferenceConfig']['temperature'] == 0.0

    def test_malformed_reply_falls_back(self):
        runtime = Mock()
        runtime.invoke_model.return_value = _bedrock_response({'unexpected': True})
        client = BedrockClient('model-x', runtime_client=runtime)

        assert client.invoke('prompt') == FALLBACK_TEXT

    def test_access_denied_raises(self):
        runtime = Mock()
        runtime.invoke_model.side_effect = _client_error('AccessDeniedException')
        client = BedrockClient('model-x', runtime_client=runtime)

        with pytest.raises(NarrativeGenerationError):
            client.invoke('prompt')

    def test_throttling_exhausted_raises(self):
        runtime = Mock()
        runtime.invoke_model.side_effect = _client_error('ThrottlingException')
        client = BedrockClient('model-x', runtime_client=runtime, max_retries=1)

        with pytest.raises(NarrativeGenerationError):
            client.invoke('prompt')

        assert runtime.invoke_model.call_count == 2
