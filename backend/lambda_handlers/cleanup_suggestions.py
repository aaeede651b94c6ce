# backend/lambda_handlers/cleanup_suggestions.py
"""
Lambda function to delete old suggestions
Triggered by a CloudWatch Events schedule (e.g. rate(1 day))
"""
import json
import logging
import os
from datetime import datetime, timedelta, timezone

from backend.lib.dynamodb_service import DynamoDBService

logger = logging.getLogger()
logger.setLevel(logging.INFO)

RETENTION_DAYS = float(os.getenv('SUGGESTION_RETENTION_DAYS', '7'))

_service = None


def get_service() -> DynamoDBService:
    global _service
    if _service is None:
        _service = DynamoDBService()
    return _service


def lambda_handler(event, context):
    """
    Delete suggestions older than the retention window.

    The event may carry 'retention_days' to override the configured window.
    """
    logger.info("Received event: %s", json.dumps(event))

    try:
        days = float((event or {}).get('retention_days', RETENTION_DAYS))
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        deleted = get_service().delete_suggestions_older_than(cutoff)
        logger.info("Deleted %d suggestions older than %s", deleted, cutoff.isoformat())

        return {
            'statusCode': 200,
            'body': json.dumps({'deleted': deleted, 'cutoff': cutoff.isoformat()})
        }
    except Exception as e:
        logger.exception("Cleanup failed")
        return {
            'statusCode': 500,
            'body': json.dumps({'error': str(e)})
        }
