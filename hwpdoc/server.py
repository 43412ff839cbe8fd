"""
HTTP Microservice
=================
Flask-based HTTP API over the tool engine.

Endpoints:
    GET    /api/health        → Health check
    GET    /api/info          → Version and capability info
    GET    /api/tools         → Tool definitions with input schemas
    POST   /api/tools/<name>  → Run a tool; JSON body is its arguments
    POST   /rpc               → One JSON-RPC 2.0 message
"""

from __future__ import annotations

import logging

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS
import mcp.types as types

from . import __version__
from .contracts import FORMAT_VALUES, IMAGE_MODE_VALUES, PROTOCOL_VERSION
from .engine import ToolConfig, ToolEngine
from .errors import ErrorKind
from .rpc import handle_message

logger = logging.getLogger(__name__)

# Fits a base64-encoded MAX_INPUT_BYTES document plus the rest of the JSON
# body.
DEFAULT_MAX_CONTENT_LENGTH = 80 * 1024 * 1024

ERROR_STATUS = {
    ErrorKind.INVALID_INPUT.value: 400,
    ErrorKind.UNSUPPORTED_FORMAT.value: 400,
    ErrorKind.TOO_LARGE.value: 413,
    ErrorKind.ENCRYPTED.value: 422,
    ErrorKind.PARSE_FAILED.value: 422,
    ErrorKind.INTERNAL_ERROR.value: 500,
}


def _engine() -> ToolEngine:
    return current_app.extensions["hwpdoc"]


def create_app(config: dict = None) -> Flask:
    """Create and configure the Flask app."""
    app = Flask(__name__)
    CORS(app)

    if config:
        app.config.update(config)

    app.config.setdefault("HWPDOC_LOG_LEVEL", "INFO")
    app.config.setdefault("HWPDOC_LOG_FILE", None)
    app.config.setdefault("HWPDOC_RESOURCE_DIR", None)
    app.config.setdefault("HWPDOC_DEFAULT_IMAGES", "metadata")
    app.config.setdefault("MAX_CONTENT_LENGTH", DEFAULT_MAX_CONTENT_LENGTH)

    app.extensions["hwpdoc"] = ToolEngine(ToolConfig(
        log_level=app.config["HWPDOC_LOG_LEVEL"],
        log_file=app.config["HWPDOC_LOG_FILE"],
        resource_dir=app.config["HWPDOC_RESOURCE_DIR"],
        default_images=app.config["HWPDOC_DEFAULT_IMAGES"],
    ))

    _register_routes(app)
    return app


def _register_routes(app: Flask):

    # ─── Health Check ─────────────────────────────────────────────────────

    @app.route("/api/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({
            "status": "healthy",
            "service": "hwpdoc",
            "version": __version__,
        })

    @app.route("/api/info", methods=["GET"])
    def info():
        """Version and capability info."""
        return jsonify({
            "version": __version__,
            "protocol_version": PROTOCOL_VERSION,
            "capabilities": [
                "text_extraction",
                "metadata_inspection",
                "structure_summary",
                "rich_extraction",
            ],
            "supported_formats": list(FORMAT_VALUES),
            "image_modes": list(IMAGE_MODE_VALUES),
        })

    # ─── Tools ────────────────────────────────────────────────────────────

    @app.route("/api/tools", methods=["GET"])
    def list_tools():
        return jsonify({"tools": _engine().list_tools()})

    @app.route("/api/tools/<name>", methods=["POST"])
    def call_tool(name: str):
        """
        Run one tool. The envelope is returned as-is; failures map their
        error kind to an HTTP status (unknown tools are 404).
        """
        engine = _engine()
        if name not in {tool["name"] for tool in engine.list_tools()}:
            result = engine.call(name, {})
            return jsonify(result.to_wire()), 404

        arguments = request.get_json(silent=True)
        result = engine.call(name, arguments)
        if not result.is_error:
            return jsonify(result.to_wire()), 200

        kind = result.structured_content.get("error", {}).get("kind")
        return jsonify(result.to_wire()), ERROR_STATUS.get(kind, 500)

    # ─── JSON-RPC ─────────────────────────────────────────────────────────

    @app.route("/rpc", methods=["POST"])
    def rpc():
        message = request.get_json(silent=True)
        if message is None:
            return jsonify({
                "jsonrpc": "2.0",
                "id": None,
                "error": {"code": types.PARSE_ERROR, "message": "parse error"},
            }), 400

        response = handle_message(_engine(), message)
        if response is None:
            return "", 204
        return jsonify(response), 200


# ─── Run Server ──────────────────────────────────────────────────────────────


def run_server(
    host: str = "127.0.0.1",
    port: int = 5000,
    debug: bool = False,
    config: dict = None,
):
    """Start the microservice server."""
    app = create_app(config)
    logger.info(f"Starting server on {host}:{port}")
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_server(debug=True)
