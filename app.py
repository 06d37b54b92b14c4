"""Application entry point for the incentive approval bridge."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from uuid import uuid4

from flask import Flask, Response, jsonify, request, copy_current_request_context
from slack_bolt import App as SlackApp
from slack_bolt.adapter.flask import SlackRequestHandler
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError
import structlog
from structlog.contextvars import bind_contextvars, unbind_contextvars
from werkzeug.exceptions import HTTPException

from incentive_bridge.background import run_async
from incentive_bridge.config import AppSettings, get_settings
from incentive_bridge.controls import CONTROL_ID_PATTERN
from incentive_bridge.interactions import handle_decision_action
from incentive_bridge.logging_config import configure_logging
from incentive_bridge.notifications import ChannelUnavailableError, publish_approval_card
from incentive_bridge.record_store import RecordStoreError
from incentive_bridge.resources import BridgeResources
from incentive_bridge.security import (
    SLACK_SIGNATURE_HEADER,
    SLACK_TIMESTAMP_HEADER,
    WEBHOOK_SECRET_HEADER,
    is_valid_slack_request,
    is_valid_webhook_secret,
)

EXTENSION_KEY = "incentive_bridge"
DISTRIBUTION_NAME = "incentive-approval-bridge"

_LOGGING_CONFIGURED = False


def _plain(text: str, status: int) -> Response:
    return Response(text, status=status, mimetype="text/plain")


def _load_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "unknown"


def _create_bolt_app(settings: AppSettings, *, client: WebClient | None = None) -> SlackApp:
    """Initialise the Slack Bolt application using validated settings."""

    # /slack/events has already answered Slack, so listeners run to completion on the worker.
    return SlackApp(
        token=settings.bot_token,
        signing_secret=settings.signing_secret,
        client=client,
        token_verification_enabled=False,
        process_before_response=True,
    )


def _register_error_handlers(flask_app: Flask) -> None:
    """Register a JSON error handler that attaches a trace identifier."""

    @flask_app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):  # type: ignore[override]
        if isinstance(error, HTTPException):
            return error

        trace_id = str(uuid4())
        flask_app.logger.exception(
            "Unhandled application error", extra={"trace_id": trace_id}, exc_info=error
        )
        response = jsonify({"error": "internal_server_error", "trace_id": trace_id})
        response.status_code = 500
        return response


def _register_action_handlers(bolt_app: SlackApp, resources: BridgeResources) -> None:
    @bolt_app.action(CONTROL_ID_PATTERN)
    def handle_decision(ack, body, logger):
        handle_decision_action(
            ack=ack,
            body=body,
            slack=resources.slack,
            store=resources.store,
            logger=logger,
        )


def _slack_error_text(exc: SlackApiError) -> str:
    if getattr(exc, "response", None) is not None:
        return str(exc.response.get("error") or exc)
    return str(exc)


def _handle_send_incentive(resources: BridgeResources) -> Response:
    trace_id = str(uuid4())
    bind_contextvars(trace_id=trace_id)
    log = structlog.get_logger().bind(trace_id=trace_id)

    try:
        settings = resources.settings
        if not is_valid_webhook_secret(settings.webhook_secret, request.headers.get(WEBHOOK_SECRET_HEADER)):
            log.warning("webhook_unauthorized", remote_addr=request.remote_addr)
            return _plain("Unauthorized", 401)

        payload = request.get_json(silent=True)
        record_id = payload.get("recordId") if isinstance(payload, dict) else None
        if not isinstance(record_id, str) or not record_id:
            log.warning("webhook_missing_record_id")
            return _plain("Missing recordId", 400)

        log = log.bind(record_id=record_id)

        try:
            posted = publish_approval_card(
                store=resources.store,
                slack=resources.slack,
                channel_id=settings.channel_id,
                record_id=record_id,
            )
        except RecordStoreError as exc:
            log.error("record_fetch_failed", status_code=exc.status_code, error=str(exc))
            return _plain(str(exc), 500)
        except ChannelUnavailableError:
            log.error("channel_unavailable", channel=settings.channel_id)
            return _plain("Channel not found or not text-based", 400)
        except SlackApiError as exc:
            error_text = _slack_error_text(exc)
            log.error("card_post_failed", channel=settings.channel_id, error=error_text)
            return _plain(error_text, 500)

        return _plain(f"Sent incentive approval message: {posted.ts}", 200)
    finally:
        unbind_contextvars("trace_id")


def create_app(resources: BridgeResources | None = None) -> Flask:
    """Create and configure the Flask application."""

    global _LOGGING_CONFIGURED

    settings = resources.settings if resources is not None else get_settings()
    if not _LOGGING_CONFIGURED:
        configure_logging(settings.log_level)
        _LOGGING_CONFIGURED = True

    bolt_app = _create_bolt_app(settings)
    if resources is None:
        resources = BridgeResources.open(settings, web_client=bolt_app.client)
    handler = SlackRequestHandler(bolt_app)

    flask_app = Flask(__name__)
    flask_app.config["APP_VERSION"] = _load_version()
    flask_app.extensions[EXTENSION_KEY] = resources
    flask_app.logger.setLevel(settings.log_level)

    _register_error_handlers(flask_app)
    _register_action_handlers(bolt_app, resources)

    @flask_app.before_request
    def log_incoming_request():
        structlog.get_logger().info("incoming_request", method=request.method, path=request.path)

    @flask_app.route("/", methods=["GET"])
    def liveness():
        return _plain("OK", 200)

    @flask_app.route("/healthz", methods=["GET"])
    def healthz():
        health: dict[str, object] = {"ok": True}
        health["version"] = flask_app.config.get("APP_VERSION", "unknown")
        try:
            get_settings()
            health["config"] = "valid"
        except RuntimeError as exc:
            health["config"] = "invalid"
            health["config_error"] = str(exc)
            health["ok"] = False

        status = 200 if health["ok"] else 503
        return jsonify(health), status

    @flask_app.route("/send-incentive", methods=["POST"])
    def send_incentive():
        return _handle_send_incentive(resources)

    @flask_app.route("/slack/events", methods=["POST"])
    def slack_events():
        raw_body = request.get_data(as_text=True)
        timestamp = request.headers.get(SLACK_TIMESTAMP_HEADER, "")
        signature = request.headers.get(SLACK_SIGNATURE_HEADER, "")

        if not is_valid_slack_request(
            signing_secret=settings.signing_secret,
            timestamp=timestamp,
            body=raw_body,
            signature=signature,
        ):
            response = jsonify({"error": "invalid_signature"})
            response.status_code = 401
            return response

        trace_id = str(uuid4())

        @copy_current_request_context
        def process_request():
            handler.handle(request)

        run_async(process_request, trace_id=trace_id)
        return "", 200

    return flask_app


def main() -> None:
    application = create_app()
    resources: BridgeResources = application.extensions[EXTENSION_KEY]

    try:
        resources.login()
        structlog.get_logger().info("web_server_starting", port=resources.settings.port)
        application.run(host="0.0.0.0", port=resources.settings.port)
    finally:
        resources.close()


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    main()
