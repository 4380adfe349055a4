"""
Free text to ParsedIntent translation.
"""
import json
import logging
from datetime import date
from typing import Any, Dict, Optional

from ..exceptions import IntentTranslationError, NarrativeGenerationError, TransientBackendError
from ..models.intent import ParsedIntent
from ..utils.validators import ValidationError

logger = logging.getLogger(__name__)

TRANSLATION_PROMPT = """Convert this command to JSON:
- 'intent': one of "monthly-billing", "daily-billing", "resource-breakdown", "scheduled-report", "period-comparison" or "anomaly-report".
- ONLY for intent "period-comparison", include 'period1' and 'period2' as objects with 'start' and 'end' (YYYY-MM-DD). For example if the user asks to compare June and May, period1 is {{"start": "<year>-06-01", "end": "<year>-07-01"}} and period2 is {{"start": "<year>-05-01", "end": "<year>-06-01"}}.
- For other intents, include 'days', or 'startDate' and 'endDate' (YYYY-MM-DD, end exclusive), when the user gives a time range.
- For "scheduled-report", include 'cronExpression' and 'granularity' ("DAILY" or "MONTHLY"). Cron format: cron(Minutes Hours Day-of-month Month Day-of-week Year), see https://docs.aws.amazon.com/eventbridge/latest/userguide/eb-scheduled-rule-pattern.html
- Use "resource-breakdown" when the user asks about individual resources.
- Use "anomaly-report" when the user asks about incidents, anomalies or spikes.
- If the user has any special requirements, include them in 'specialRequirements'. For example, if the user asks for the top 5 most expensive services.
- Time references use {today} as today.
- Reply with the JSON object only.

Input: {command}
JSON:"""


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Pull the first JSON object out of a model reply.

    Args:
        text: Model reply, possibly with prose or code fences around the JSON

    Returns:
        Parsed object

    Raises:
        IntentTranslationError: If no JSON object can be parsed
    """
    start = text.find('{') if text else -1
    end = text.rfind('}') if text else -1
    if start == -1 or end <= start:
        raise IntentTranslationError('Could not understand the request')

    try:
        value = json.loads(text[start:end + 1])
    except json.JSONDecodeError:
        raise IntentTranslationError('Could not understand the request')

    if not isinstance(value, dict):
        raise IntentTranslationError('Could not understand the request')
    return value


class IntentTranslator:
    """
    Turns a user's cost question into a ParsedIntent with a language model.

    Short aliases the model emits are mapped onto the closed intent
    enumeration here, once; nothing downstream looks at the text again.
    """

    def __init__(self, llm_client):
        """
        Args:
            llm_client: Object with invoke(prompt, temperature=None) -> str
        """
        self.llm = llm_client

    def build_prompt(self, command: str, today: date) -> str:
        return TRANSLATION_PROMPT.format(today=today.isoformat(), command=command)

    def translate(self, command: str, today: Optional[date] = None) -> ParsedIntent:
        """
        Translate free text into a ParsedIntent.

        Args:
            command: User's question
            today: Date relative references resolve against

        Returns:
            ParsedIntent

        Raises:
            IntentTranslationError: If the reply is not a valid intent
            TransientBackendError: If the model cannot be reached
        """
        prompt = self.build_prompt(command, today or date.today())
        try:
            reply = self.llm.invoke(prompt, temperature=0.0)
        except NarrativeGenerationError as e:
            raise TransientBackendError(f"Intent translation unavailable: {e}") from e

        data = extract_json_object(reply)
        logger.info(f"Translated command into intent {data.get('intent')!r}")

        try:
            return ParsedIntent.from_dict(data)
        except ValidationError as e:
            raise IntentTranslationError(
                f'Could not understand the request: {e.message}',
                field=e.field or 'message'
            ) from e
