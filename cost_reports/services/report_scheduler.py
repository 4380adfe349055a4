"""
Recurring cost reports through EventBridge schedule rules.
"""
import json
import logging
import time
from dataclasses import replace
from typing import Callable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import SchedulingError
from ..models.intent import Granularity, IntentType, ParsedIntent
from ..models.resolution import Scheduled
from ..utils.validators import validate_schedule_expression

logger = logging.getLogger(__name__)

RULE_PREFIX = 'ScheduledCostReport'


def scheduled_billing_intent(query: ParsedIntent) -> ParsedIntent:
    """
    Billing intent a scheduled run answers.

    MONTHLY schedules produce a monthly report, everything else a daily
    one. The window and special requirements are kept; the schedule
    itself is dropped.
    """
    if query.granularity is Granularity.MONTHLY:
        intent_type = IntentType.MONTHLY_BILLING
    else:
        intent_type = IntentType.DAILY_BILLING
    return replace(query.with_intent(intent_type), cron_expression=None)


class ReportScheduler:
    """
    Creates an EventBridge rule that invokes the scheduled report
    function with the stored query.
    """

    def __init__(
        self,
        target_arn: str,
        region: str = 'us-east-1',
        events_client=None,
        clock: Callable[[], float] = time.time
    ):
        """
        Args:
            target_arn: ARN of the scheduled report function
            region: AWS region
            events_client: Optional boto3 EventBridge client (for testing)
            clock: Source of the current Unix time
        """
        self.target_arn = target_arn
        self.client = events_client or boto3.client('events', region_name=region)
        self.clock = clock

    def schedule(self, intent: ParsedIntent) -> Scheduled:
        """
        Create the schedule rule and its target.

        Args:
            intent: scheduled-report intent carrying cronExpression

        Returns:
            Scheduled result

        Raises:
            ValidationError: If the schedule expression is missing or malformed
            SchedulingError: If the rule cannot be created
        """
        expression = validate_schedule_expression(intent.cron_expression)
        if not self.target_arn:
            raise SchedulingError('Scheduled reports are not configured')

        stamp = int(self.clock() * 1000)
        rule_name = f'{RULE_PREFIX}-{stamp}'

        try:
            self.client.put_rule(
                Name=rule_name,
                ScheduleExpression=expression,
                State='ENABLED',
                Description='Recurring AWS cost report'
            )
            self.client.put_targets(
                Rule=rule_name,
                Targets=[
                    {
                        'Id': f'{RULE_PREFIX}Target-{stamp}',
                        'Arn': self.target_arn,
                        'Input': json.dumps({'query': intent.to_dict()}),
                    }
                ]
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error creating schedule rule {rule_name}: {e}")
            raise SchedulingError(f"Failed to schedule report: {e}") from e

        logger.info(f"Created schedule rule {rule_name} ({expression})")
        return Scheduled(rule_name=rule_name, schedule_expression=expression)
