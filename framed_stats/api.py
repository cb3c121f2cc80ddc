"""
API Blueprint

Inbound HTTP endpoints: Discord interactions, the internal stats handoff and
the health check.
"""

import hmac
import logging
import threading

from flask import Blueprint, current_app, jsonify, request

from . import limiter
from .dispatch import HANDOFF_SECRET_HEADER
from .interactions import handle_interaction
from .security import require_discord_signature
from .verbs import InvalidInteractionPayload, process_stats_interaction

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


def _services():
    return current_app.extensions["framed_stats"]


@api_bp.route("/interactions", methods=["POST"])
@require_discord_signature
def interactions():
    """Interactions endpoint URL where Discord sends its HTTP requests."""
    logger.info("Handling interaction")
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "invalid JSON body"}), 400

    # The stats task waits for this event, so its follow-up edit never
    # reaches Discord before the deferred response does.
    acknowledged = threading.Event()
    dispatcher = _services()["dispatcher"]
    body, status = handle_interaction(
        payload, lambda stats_payload: dispatcher.dispatch(stats_payload, acknowledged=acknowledged)
    )
    response = jsonify(body)
    response.status_code = status
    response.call_on_close(acknowledged.set)
    return response


@api_bp.route("/process-stats-interaction", methods=["POST"])
def process_stats():
    """Run a stats request to completion; target of the ``http`` handoff."""
    logger.info("Handling /process-stats-interaction request")
    services = _services()

    secret = services["settings"].handoff_secret
    if secret and not hmac.compare_digest(request.headers.get(HANDOFF_SECRET_HEADER, ""), secret):
        logger.warning("Rejected stats handoff with missing or wrong secret")
        return jsonify({"success": False, "error": "unauthorized"}), 401

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"success": False, "error": "invalid JSON body"}), 400

    try:
        process_stats_interaction(payload, services["discord_client"], sleep=services["sleep"])
    except InvalidInteractionPayload as exc:
        return jsonify({"success": False, "error": str(exc)}), 400
    except Exception as exc:
        # Already logged by the verb, the follow-up carries the failure notice.
        return jsonify({"success": False, "error": type(exc).__name__}), 500

    return jsonify({"success": True})


@api_bp.route("/ping", methods=["GET"])
@limiter.exempt
def ping():
    """Light-weight liveness check endpoint."""
    return jsonify({"message": "pong"})
