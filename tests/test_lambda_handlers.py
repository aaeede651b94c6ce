# tests/test_lambda_handlers.py
import json
from unittest.mock import MagicMock

import pytest

from backend.lambda_handlers import cleanup_suggestions, get_alerts


@pytest.fixture
def service(monkeypatch):
    mock = MagicMock()
    monkeypatch.setattr(cleanup_suggestions, "get_service", lambda: mock)
    monkeypatch.setattr(get_alerts, "get_service", lambda: mock)
    return mock


def test_cleanup_deletes_old_suggestions(service):
    service.delete_suggestions_older_than.return_value = 3

    result = cleanup_suggestions.lambda_handler({"retention_days": 1}, None)

    assert result["statusCode"] == 200
    assert json.loads(result["body"])["deleted"] == 3
    service.delete_suggestions_older_than.assert_called_once()


def test_cleanup_reports_errors(service):
    service.delete_suggestions_older_than.side_effect = RuntimeError("boom")
    result = cleanup_suggestions.lambda_handler({}, None)
    assert result["statusCode"] == 500


def test_get_alerts_requires_device(service):
    result = get_alerts.lambda_handler({"queryStringParameters": None}, None)
    assert result["statusCode"] == 400


def test_get_alerts(service):
    service.get_alerts_for_device.return_value = [{"tier": "critical"}]
    service.get_suggestions_for_device.return_value = [{"suggestion_id": "s-1"}]

    event = {"queryStringParameters": {"device_id": "d1", "limit": "5", "unread": "true"}}
    result = get_alerts.lambda_handler(event, None)

    assert result["statusCode"] == 200
    body = json.loads(result["body"])
    assert body["alerts"] == [{"tier": "critical"}]
    assert body["suggestions"] == [{"suggestion_id": "s-1"}]
    service.get_alerts_for_device.assert_called_once_with("d1", limit=5)
    service.get_suggestions_for_device.assert_called_once_with("d1", unread_only=True)


def test_get_alerts_rejects_non_positive_limit(service):
    for limit in ("0", "-1", "many"):
        event = {"queryStringParameters": {"device_id": "d1", "limit": limit}}
        assert get_alerts.lambda_handler(event, None)["statusCode"] == 400
    service.get_alerts_for_device.assert_not_called()
