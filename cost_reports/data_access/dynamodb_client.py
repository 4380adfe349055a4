"""
DynamoDB client with conditional writes and error handling.
"""
import logging
from typing import Dict, Optional, Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import (
    DynamoDBError,
    ConditionalCheckFailedError,
    RetryableError,
)

logger = logging.getLogger(__name__)

RETRYABLE_ERROR_CODES = {
    'ProvisionedThroughputExceededException',
    'ThrottlingException',
    'RequestLimitExceeded',
    'InternalServerError',
    'ServiceUnavailable',
}


class DynamoDBClient:
    """
    Thin wrapper over the DynamoDB table resource.

    Translates botocore ClientError into the data access exceptions so
    repositories never deal with raw error codes. Connection failures
    (BotoCoreError) surface as RetryableError.
    """

    def __init__(self, region: str = 'us-east-1', dynamodb_resource=None):
        """
        Initialize DynamoDB client.

        Args:
            region: AWS region for DynamoDB
            dynamodb_resource: Optional boto3 DynamoDB resource (for testing)
        """
        self.dynamodb = dynamodb_resource or boto3.resource('dynamodb', region_name=region)

    def get_table(self, table_name: str):
        """
        Get DynamoDB table resource.

        Args:
            table_name: Name of the table

        Returns:
            DynamoDB table resource
        """
        return self.dynamodb.Table(table_name)

    def get_item(
        self,
        table_name: str,
        key: Dict[str, Any],
        consistent_read: bool = False
    ) -> Optional[Dict[str, Any]]:
        """
        Get item from DynamoDB table.

        Args:
            table_name: Name of the table
            key: Primary key of the item
            consistent_read: Whether to use consistent read

        Returns:
            Item dict or None if not found

        Raises:
            DynamoDBError: On DynamoDB errors
        """
        try:
            table = self.get_table(table_name)
            response = table.get_item(
                Key=key,
                ConsistentRead=consistent_read
            )
            return response.get('Item')
        except ClientError as e:
            logger.error(f"Error getting item from {table_name}: {e}")
            raise self._translate_error(e, 'get item')
        except BotoCoreError as e:
            logger.error(f"Error getting item from {table_name}: {e}")
            raise RetryableError(f"Failed to get item: {e}")

    def put_item(
        self,
        table_name: str,
        item: Dict[str, Any],
        condition_expression: Optional[str] = None,
        expression_attribute_values: Optional[Dict[str, Any]] = None,
        expression_attribute_names: Optional[Dict[str, str]] = None
    ) -> None:
        """
        Put item into DynamoDB table.

        Args:
            table_name: Name of the table
            item: Item to put
            condition_expression: Optional condition expression
            expression_attribute_values: Optional expression attribute values
            expression_attribute_names: Optional expression attribute names

        Raises:
            ConditionalCheckFailedError: If condition check fails
            DynamoDBError: On other DynamoDB errors
        """
        try:
            table = self.get_table(table_name)
            kwargs = {'Item': item}

            if condition_expression:
                kwargs['ConditionExpression'] = condition_expression
            if expression_attribute_values:
                kwargs['ExpressionAttributeValues'] = expression_attribute_values
            if expression_attribute_names:
                kwargs['ExpressionAttributeNames'] = expression_attribute_names

            table.put_item(**kwargs)
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                raise ConditionalCheckFailedError("Conditional check failed")
            logger.error(f"Error putting item to {table_name}: {e}")
            raise self._translate_error(e, 'put item')
        except BotoCoreError as e:
            logger.error(f"Error putting item to {table_name}: {e}")
            raise RetryableError(f"Failed to put item: {e}")

    def update_item(
        self,
        table_name: str,
        key: Dict[str, Any],
        update_expression: str,
        condition_expression: Optional[str] = None,
        expression_attribute_values: Optional[Dict[str, Any]] = None,
        expression_attribute_names: Optional[Dict[str, str]] = None,
        return_values: str = 'NONE'
    ) -> Optional[Dict[str, Any]]:
        """
        Update item in DynamoDB table.

        Args:
            table_name: Name of the table
            key: Primary key of the item
            update_expression: Update expression
            condition_expression: Optional condition expression
            expression_attribute_values: Optional expression attribute values
            expression_attribute_names: Optional expression attribute names
            return_values: What to return (NONE, ALL_OLD, UPDATED_OLD, ALL_NEW, UPDATED_NEW)

        Returns:
            Updated attributes if return_values is not NONE

        Raises:
            ConditionalCheckFailedError: If condition check fails
            DynamoDBError: On other DynamoDB errors
        """
        try:
            table = self.get_table(table_name)
            kwargs = {
                'Key': key,
                'UpdateExpression': update_expression,
                'ReturnValues': return_values
            }

            if condition_expression:
                kwargs['ConditionExpression'] = condition_expression
            if expression_attribute_values:
                kwargs['ExpressionAttributeValues'] = expression_attribute_values
            if expression_attribute_names:
                kwargs['ExpressionAttributeNames'] = expression_attribute_names

            response = table.update_item(**kwargs)
            return response.get('Attributes')
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                raise ConditionalCheckFailedError("Conditional check failed")
            logger.error(f"Error updating item in {table_name}: {e}")
            raise self._translate_error(e, 'update item')
        except BotoCoreError as e:
            logger.error(f"Error updating item in {table_name}: {e}")
            raise RetryableError(f"Failed to update item: {e}")

    def set_attributes(
        self,
        table_name: str,
        key: Dict[str, Any],
        attributes: Dict[str, Any],
        condition_expression: Optional[str] = None,
        condition_values: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        SET several attributes of one item in a single update.

        Attribute names are always aliased, so reserved words such as
        ``ttl`` or ``status`` are safe to use.

        Args:
            table_name: Name of the table
            key: Primary key of the item
            attributes: Attribute name to new value
            condition_expression: Optional condition expression
            condition_values: Expression attribute values used by the condition

        Raises:
            ConditionalCheckFailedError: If condition check fails
            DynamoDBError: On other DynamoDB errors
        """
        if not attributes:
            raise ValueError("attributes must not be empty")

        names = {}
        values = dict(condition_values or {})
        assignments = []
        for index, (name, value) in enumerate(attributes.items()):
            names[f'#a{index}'] = name
            values[f':v{index}'] = value
            assignments.append(f'#a{index} = :v{index}')

        self.update_item(
            table_name=table_name,
            key=key,
            update_expression='SET ' + ', '.join(assignments),
            condition_expression=condition_expression,
            expression_attribute_values=values,
            expression_attribute_names=names
        )

    @staticmethod
    def _translate_error(error: ClientError, action: str) -> DynamoDBError:
        """
        Map a botocore ClientError onto the data access exceptions.

        Args:
            error: Original ClientError
            action: Human readable action for the message

        Returns:
            RetryableError for throttling/availability codes, DynamoDBError otherwise
        """
        code = error.response.get('Error', {}).get('Code', '')
        if code in RETRYABLE_ERROR_CODES:
            return RetryableError(f"Failed to {action}: {error}")
        return DynamoDBError(f"Failed to {action}: {error}")
