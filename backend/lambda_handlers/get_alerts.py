# backend/lambda_handlers/get_alerts.py
"""
Lambda function to get grouped alerts and suggestions for a device
Triggered by API Gateway
"""
import json
import logging

from backend.lib.dynamodb_service import DynamoDBService

logger = logging.getLogger()
logger.setLevel(logging.INFO)

DEFAULT_LIMIT = 20

_service = None


def get_service() -> DynamoDBService:
    global _service
    if _service is None:
        _service = DynamoDBService()
    return _service


def lambda_handler(event, context):
    """
    Get alerts and suggestions for a device.

    Query parameters:
    - device_id: Required, the device ID
    - limit: maximum number of alerts (default: 20)
    - unread: 'true' to return only unread suggestions
    """
    logger.info("Received event: %s", json.dumps(event))

    try:
        params = event.get('queryStringParameters') or {}
        device_id = params.get('device_id')

        if not device_id:
            return response(400, {'error': 'device_id is required'})

        try:
            limit = int(params.get('limit', DEFAULT_LIMIT))
        except ValueError:
            return response(400, {'error': 'limit must be an integer'})
        if limit <= 0:
            return response(400, {'error': 'limit must be a positive integer'})
        unread_only = params.get('unread', 'false').lower() == 'true'

        service = get_service()
        alerts = service.get_alerts_for_device(device_id, limit=limit)
        suggestions = service.get_suggestions_for_device(device_id, unread_only=unread_only)

        return response(200, {
            'device_id': device_id,
            'alerts': alerts,
            'suggestions': suggestions
        })

    except Exception as e:
        logger.exception("Failed to load alerts")
        return response(500, {'error': str(e)})


def response(status_code: int, body: dict) -> dict:
    """Create API Gateway response."""
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json',
            'Access-Control-Allow-Origin': '*',
            'Access-Control-Allow-Methods': 'GET,OPTIONS',
            'Access-Control-Allow-Headers': 'Content-Type'
        },
        'body': json.dumps(body)
    }
