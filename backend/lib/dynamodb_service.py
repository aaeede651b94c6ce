"""
=============================================================================
DYNAMODB SERVICE - Document store for the consumption simulator
=============================================================================

The simulator persists everything it produces to four DynamoDB tables.

Our Table Schemas:
------------------
Devices        - device_id (S, HASH)
                 reading (N), last_updated (S)
Alerts         - device_id (S, HASH), created_at (S, RANGE)
                 tier, message, average_reading, max_reading, counts, samples
Suggestions    - suggestion_id (S, HASH)
                 device_id, tier, short_message, description,
                 related_reading, read, context, created_at
DeviceHistory  - device_id (S, HASH), timestamp (S, RANGE)
                 reading (N)

Example Alert Item:
{
    "device_id": "device-001",
    "created_at": "2025-11-28T10:30:00.000000+00:00",
    "tier": "warning",
    "message": "elevated consumption",
    "average_reading": 2.61,
    "max_reading": 3.41,
    "counts": {"critical": 2, "warning": 9, "excellent": 4},
    "samples": 15
}

Timestamps are ISO-8601 UTC strings, so they sort and compare
lexicographically. That is what the retention sweep relies on.

Every method catches AWS errors, logs them and reports failure through its
return value (False, an empty list, or a partial count). Callers decide
whether to carry on.
=============================================================================
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from backend.lib.consumption_core.models import AggregatedAlert, Suggestion

logger = logging.getLogger(__name__)

AWS_ERRORS = (ClientError, BotoCoreError)

# DynamoDB batch_write_item takes at most 25 items per request
BATCH_SIZE = 25


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_decimal(value):
    """
    DynamoDB rejects floats; go through str() to avoid precision noise.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_decimal(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_decimal(v) for v in value]
    return value


def from_decimal(value):
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {k: from_decimal(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_decimal(v) for v in value]
    return value


class DynamoDBService:
    """
    DynamoDB implementation of the simulator's document store.

    Usage:
        db = DynamoDBService()
        db.create_tables_if_not_exist()
        db.update_reading("device-001", 2.73)
    """

    def __init__(self, devices_table: str = None, alerts_table: str = None,
                 suggestions_table: str = None, history_table: str = None,
                 resource=None):
        """
        Table names come from the arguments, then the environment, then the
        defaults. `resource` lets callers hand in an existing boto3
        DynamoDB resource; otherwise one is built from the AWS_* variables.
        """
        self.devices_table_name = devices_table or os.getenv('DEVICES_TABLE_NAME', 'Devices')
        self.alerts_table_name = alerts_table or os.getenv('ALERTS_TABLE_NAME', 'Alerts')
        self.suggestions_table_name = suggestions_table or os.getenv('SUGGESTIONS_TABLE_NAME', 'Suggestions')
        self.history_table_name = history_table or os.getenv('HISTORY_TABLE_NAME', 'DeviceHistory')

        self.region = os.getenv('AWS_REGION', 'us-east-1')

        if resource is None:
            session_token = os.getenv('AWS_SESSION_TOKEN')
            resource = boto3.resource(
                'dynamodb',
                region_name=self.region,
                aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
                aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
                aws_session_token=session_token if session_token else None
            )
        self.dynamodb = resource

        self.devices = self.dynamodb.Table(self.devices_table_name)
        self.alerts = self.dynamodb.Table(self.alerts_table_name)
        self.suggestions = self.dynamodb.Table(self.suggestions_table_name)
        self.history = self.dynamodb.Table(self.history_table_name)

    # -------------------------------------------------------------------------
    # Table management
    # -------------------------------------------------------------------------

    def table_schemas(self) -> Dict[str, List[tuple]]:
        # table name -> [(attribute, key type)], all keys are strings
        return {
            self.devices_table_name: [('device_id', 'HASH')],
            self.alerts_table_name: [('device_id', 'HASH'), ('created_at', 'RANGE')],
            self.suggestions_table_name: [('suggestion_id', 'HASH')],
            self.history_table_name: [('device_id', 'HASH'), ('timestamp', 'RANGE')],
        }

    def create_tables_if_not_exist(self) -> bool:
        """
        Create any of the four tables that does not exist yet.

        Returns:
            bool: True if every table exists or was created
        """
        ok = True
        for table_name, keys in self.table_schemas().items():
            ok = self._create_table_if_not_exists(table_name, keys) and ok
        return ok

    def _create_table_if_not_exists(self, table_name: str, keys: List[tuple]) -> bool:
        client = self.dynamodb.meta.client
        try:
            client.describe_table(TableName=table_name)
            logger.info("DynamoDB table '%s' exists", table_name)
            return True
        except ClientError as e:
            if e.response['Error']['Code'] != 'ResourceNotFoundException':
                logger.error("Error checking table %s: %s", table_name, e)
                return False

        try:
            table = self.dynamodb.create_table(
                TableName=table_name,
                KeySchema=[
                    {'AttributeName': name, 'KeyType': key_type}
                    for name, key_type in keys
                ],
                AttributeDefinitions=[
                    {'AttributeName': name, 'AttributeType': 'S'}
                    for name, _ in keys
                ],
                BillingMode='PAY_PER_REQUEST'
            )
            table.wait_until_exists()
            logger.info("Created DynamoDB table '%s'", table_name)
            return True
        except AWS_ERRORS as e:
            logger.error("Failed to create table %s: %s", table_name, e)
            return False

    # -------------------------------------------------------------------------
    # Devices
    # -------------------------------------------------------------------------

    def register_device(self, device_id: str) -> bool:
        try:
            self.devices.put_item(
                Item={
                    'device_id': device_id,
                    'reading': Decimal('0'),
                    'last_updated': utc_now().isoformat()
                },
                ConditionExpression='attribute_not_exists(device_id)'
            )
            return True
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                # already registered
                return True
            logger.error("Failed to register device %s: %s", device_id, e)
            return False
        except BotoCoreError as e:
            logger.error("Failed to register device %s: %s", device_id, e)
            return False

    def list_devices(self) -> List[Dict]:
        """
        Scan the devices table. Returns [] when the scan fails.
        """
        try:
            response = self.devices.scan()
            items = response.get('Items', [])

            while 'LastEvaluatedKey' in response:
                response = self.devices.scan(ExclusiveStartKey=response['LastEvaluatedKey'])
                items.extend(response.get('Items', []))

            return [from_decimal(item) for item in items]
        except AWS_ERRORS as e:
            logger.error("Failed to list devices: %s", e)
            return []

    def list_device_ids(self) -> List[str]:
        try:
            response = self.devices.scan(ProjectionExpression='device_id')
            device_ids = [item['device_id'] for item in response.get('Items', [])]

            while 'LastEvaluatedKey' in response:
                response = self.devices.scan(
                    ProjectionExpression='device_id',
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                device_ids.extend(item['device_id'] for item in response.get('Items', []))

            return device_ids
        except AWS_ERRORS as e:
            logger.error("Failed to list device ids: %s", e)
            return []

    def update_reading(self, device_id: str, reading: float) -> bool:
        try:
            self.devices.update_item(
                Key={'device_id': device_id},
                UpdateExpression='SET reading = :reading, last_updated = :ts',
                ExpressionAttributeValues={
                    ':reading': to_decimal(reading),
                    ':ts': utc_now().isoformat()
                }
            )
            return True
        except AWS_ERRORS as e:
            logger.error("Failed to update reading for %s: %s", device_id, e)
            return False

    def put_history(self, device_id: str, reading: float) -> bool:
        try:
            self.history.put_item(
                Item={
                    'device_id': device_id,
                    'timestamp': utc_now().isoformat(),
                    'reading': to_decimal(reading)
                }
            )
            return True
        except AWS_ERRORS as e:
            logger.error("Failed to store history for %s: %s", device_id, e)
            return False

    # -------------------------------------------------------------------------
    # Alerts
    # -------------------------------------------------------------------------

    def put_alert(self, alert: AggregatedAlert) -> bool:
        item = to_decimal(alert.to_item())
        item['created_at'] = utc_now().isoformat()
        try:
            self.alerts.put_item(Item=item)
            return True
        except AWS_ERRORS as e:
            logger.error("Failed to store alert for %s: %s", alert.device_id, e)
            return False

    def get_alerts_for_device(self, device_id: str, limit: Optional[int] = None) -> List[Dict]:
        """
        Alerts for one device, newest first.
        """
        query = {
            'KeyConditionExpression': Key('device_id').eq(device_id),
            'ScanIndexForward': False
        }
        if limit:
            query['Limit'] = limit

        try:
            response = self.alerts.query(**query)
            items = response.get('Items', [])

            while 'LastEvaluatedKey' in response and not (limit and len(items) >= limit):
                response = self.alerts.query(ExclusiveStartKey=response['LastEvaluatedKey'], **query)
                items.extend(response.get('Items', []))
        except AWS_ERRORS as e:
            logger.error("Failed to get alerts for %s: %s", device_id, e)
            return []

        alerts = []
        for item in items[:limit] if limit else items:
            alert = from_decimal(item)
            alert['counts'] = {k: int(v) for k, v in alert.get('counts', {}).items()}
            alert['samples'] = int(alert.get('samples', 0))
            alerts.append(alert)
        return alerts

    # -------------------------------------------------------------------------
    # Suggestions
    # -------------------------------------------------------------------------

    def put_suggestion(self, suggestion: Suggestion) -> bool:
        if not suggestion.suggestion_id:
            suggestion.suggestion_id = str(uuid.uuid4())
        if suggestion.created_at is None:
            suggestion.created_at = utc_now()

        item = to_decimal(suggestion.to_item())
        # stored in UTC so the retention sweep can compare strings
        item['created_at'] = suggestion.created_at.astimezone(timezone.utc).isoformat()

        try:
            self.suggestions.put_item(Item=item)
            return True
        except AWS_ERRORS as e:
            logger.error("Failed to store suggestion for %s: %s", suggestion.device_id, e)
            return False

    def get_suggestions_for_device(self, device_id: str, unread_only: bool = False) -> List[Dict]:
        """
        Suggestions for one device, newest first.

        The table is keyed by suggestion_id, so this is a filtered Scan.
        Fine for a simulator; a GSI on device_id would be the production fix.
        """
        condition = Attr('device_id').eq(device_id)
        if unread_only:
            condition = condition & Attr('read').eq(False)

        try:
            response = self.suggestions.scan(FilterExpression=condition)
            items = response.get('Items', [])

            while 'LastEvaluatedKey' in response:
                response = self.suggestions.scan(
                    FilterExpression=condition,
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                items.extend(response.get('Items', []))
        except AWS_ERRORS as e:
            logger.error("Failed to get suggestions for %s: %s", device_id, e)
            return []

        suggestions = [from_decimal(item) for item in items]
        suggestions.sort(key=lambda s: s.get('created_at') or '', reverse=True)
        return suggestions

    def mark_suggestion_read(self, suggestion_id: str) -> bool:
        """
        Set the read flag. Returns False when the suggestion does not exist.
        """
        try:
            self.suggestions.update_item(
                Key={'suggestion_id': suggestion_id},
                UpdateExpression='SET #read = :read',
                ConditionExpression='attribute_exists(suggestion_id)',
                ExpressionAttributeNames={'#read': 'read'},
                ExpressionAttributeValues={':read': True}
            )
            return True
        except ClientError as e:
            if e.response['Error']['Code'] != 'ConditionalCheckFailedException':
                logger.error("Failed to mark suggestion %s as read: %s", suggestion_id, e)
            return False
        except BotoCoreError as e:
            logger.error("Failed to mark suggestion %s as read: %s", suggestion_id, e)
            return False

    def delete_suggestions_older_than(self, cutoff: datetime) -> int:
        """
        Delete every suggestion created before `cutoff`.

        Returns:
            int: number of suggestions in flushed batches (partial on error)
        """
        condition = Attr('created_at').lt(cutoff.astimezone(timezone.utc).isoformat())
        deleted = 0

        try:
            response = self.suggestions.scan(
                FilterExpression=condition,
                ProjectionExpression='suggestion_id'
            )
            keys = [item['suggestion_id'] for item in response.get('Items', [])]

            while 'LastEvaluatedKey' in response:
                response = self.suggestions.scan(
                    FilterExpression=condition,
                    ProjectionExpression='suggestion_id',
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                keys.extend(item['suggestion_id'] for item in response.get('Items', []))

            # one writer per 25-item batch; a batch only counts once it is flushed
            for i in range(0, len(keys), BATCH_SIZE):
                batch = keys[i:i + BATCH_SIZE]
                with self.suggestions.batch_writer() as writer:
                    for suggestion_id in batch:
                        writer.delete_item(Key={'suggestion_id': suggestion_id})
                deleted += len(batch)
        except AWS_ERRORS as e:
            logger.error("Failed to delete old suggestions: %s", e)

        return deleted
