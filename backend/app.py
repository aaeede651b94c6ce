"""
=============================================================================
CONSUMPTION SIMULATOR - DASHBOARD API
=============================================================================

Read-side REST API for a dashboard on top of the simulator's DynamoDB
tables:
- Listing and registering devices
- Viewing grouped alerts per device
- Viewing suggestions and marking them as read
- Checking the generator's tier distribution

The simulator itself runs separately (python -m backend.run_local).

How to run:
    python -m backend.app

Then visit: http://127.0.0.1:5000/health
=============================================================================
"""

import logging
import os
import random

from dotenv import load_dotenv
from flask import Flask, jsonify, request

from backend.lib.consumption_core.generator import ConsumptionGenerator, tier_distribution

load_dotenv()

logger = logging.getLogger(__name__)

MAX_DISTRIBUTION_ITERATIONS = 100_000

# =============================================================================
# DYNAMODB SERVICE INITIALIZATION
# =============================================================================
# Without DynamoDB the store-backed endpoints answer 400; /health and
# /distribution keep working.

USE_DYNAMODB = os.getenv('USE_DYNAMODB', 'false').lower() == 'true'
dynamodb_service = None

if USE_DYNAMODB:
    try:
        from backend.lib.dynamodb_service import DynamoDBService
        dynamodb_service = DynamoDBService()
        dynamodb_service.create_tables_if_not_exist()
        logger.info("DynamoDB storage enabled")
    except Exception as e:
        logger.error("DynamoDB initialization failed: %s", e)
        USE_DYNAMODB = False

app = Flask(__name__)


def store_disabled():
    return jsonify({"error": "DynamoDB not enabled"}), 400


def store_enabled() -> bool:
    return USE_DYNAMODB and dynamodb_service is not None


# =============================================================================
# API ROUTES
# =============================================================================

@app.route("/health", methods=["GET"])
def health():
    return jsonify({
        "status": "ok",
        "dynamodb_enabled": store_enabled()
    })


@app.route("/devices", methods=["GET"])
def list_devices():
    """
    List all devices with their latest reading.

    Example Response:
        {"devices": [{"device_id": "device-001", "reading": 2.73,
                      "last_updated": "2025-11-28T10:30:00+00:00"}]}
    """
    if not store_enabled():
        return store_disabled()

    devices = dynamodb_service.list_devices()
    devices.sort(key=lambda d: d["device_id"])
    return jsonify({"devices": devices})


@app.route("/devices", methods=["POST"])
def register_device():
    """
    Register a device so the simulator starts producing readings for it.

    Request Body (JSON):
        {"device_id": "device-001"}
    """
    if not store_enabled():
        return store_disabled()

    data = request.get_json(silent=True)
    if not data or not data.get("device_id"):
        return jsonify({"error": "device_id required"}), 400

    device_id = data["device_id"]
    if not dynamodb_service.register_device(device_id):
        return jsonify({"error": "Failed to register device"}), 500

    return jsonify({"device_id": device_id, "registered": True}), 201


@app.route("/alerts", methods=["GET"])
def list_alerts():
    """
    Grouped alerts for a device, newest first.

    Query Parameters:
        device_id (required)
        limit (optional): maximum number of alerts
    """
    if not store_enabled():
        return store_disabled()

    device_id = request.args.get("device_id")
    if not device_id:
        return jsonify({"error": "device_id required"}), 400

    limit = request.args.get("limit", type=int)
    if limit is not None and limit <= 0:
        return jsonify({"error": "limit must be a positive integer"}), 400

    alerts = dynamodb_service.get_alerts_for_device(device_id, limit=limit)
    return jsonify({"device_id": device_id, "alerts": alerts})


@app.route("/suggestions", methods=["GET"])
def list_suggestions():
    """
    Suggestions for a device, newest first.

    Query Parameters:
        device_id (required)
        unread (optional): 'true' to return only unread suggestions
    """
    if not store_enabled():
        return store_disabled()

    device_id = request.args.get("device_id")
    if not device_id:
        return jsonify({"error": "device_id required"}), 400

    unread_only = request.args.get("unread", "false").lower() == "true"
    suggestions = dynamodb_service.get_suggestions_for_device(device_id, unread_only=unread_only)
    return jsonify({"device_id": device_id, "suggestions": suggestions})


@app.route("/suggestions/<suggestion_id>/read", methods=["POST"])
def mark_suggestion_read(suggestion_id):
    if not store_enabled():
        return store_disabled()

    if not dynamodb_service.mark_suggestion_read(suggestion_id):
        return jsonify({"error": "Suggestion not found"}), 404

    return jsonify({"suggestion_id": suggestion_id, "read": True})


@app.route("/distribution", methods=["GET"])
def distribution():
    """
    Generate readings and report how they split across tiers.

    Query Parameters:
        iterations (optional, default 1000)
        seed (optional): integer seed for a reproducible run

    Example Response:
        {"iterations": 1000,
         "counts": {"critical": 251, "warning": 347, "excellent": 402},
         "ratios": {"critical": 0.251, "warning": 0.347, "excellent": 0.402}}
    """
    iterations = request.args.get("iterations", 1000, type=int)
    if iterations <= 0 or iterations > MAX_DISTRIBUTION_ITERATIONS:
        return jsonify({
            "error": f"iterations must be between 1 and {MAX_DISTRIBUTION_ITERATIONS}"
        }), 400

    seed = request.args.get("seed", type=int)
    counts = tier_distribution(ConsumptionGenerator(random.Random(seed)), iterations)

    return jsonify({
        "iterations": iterations,
        "counts": counts,
        "ratios": {tier: round(count / iterations, 4) for tier, count in counts.items()}
    })


if __name__ == "__main__":
    app.run(debug=True)
