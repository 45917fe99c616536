"""Flask server exposing the analysis workspace over HTTP.

Endpoints:
    GET  /api/health            liveness check
    POST /api/upload            upload a PDF and start a run
    GET  /api/workspace         current workspace snapshot
    POST /api/references        extract references of the current upload
    POST /api/chat              ask the chat assistant
    GET  /api/chat/suggestions  starter questions and welcome message
"""

import logging

from flask import Flask, jsonify, request
from flask_cors import CORS

from research_lens import __version__
from research_lens.agents.chat import DEFAULT_THREAD_ID, SUGGESTED_QUESTIONS, welcome_message
from research_lens.config import settings
from research_lens.errors import AnalysisError, DocumentError, WorkflowError, create_error_response
from research_lens.runtime import WorkspaceRuntime
from research_lens.tools.pdf_text import extract_pdf_text

logger = logging.getLogger(__name__)

# CORS configuration - restrict to local development origins
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

LOAD_FAILURE_MESSAGE = "Failed to load PDF. Please try another file."
NOT_PDF_MESSAGE = "Please upload a PDF file."


def is_pdf_upload(filename: str | None, content_type: str | None) -> bool:
    """Accept files declared as PDF by content type or extension."""
    if content_type and content_type.split(";")[0].strip().lower() == "application/pdf":
        return True
    return bool(filename) and filename.lower().endswith(".pdf")


def create_app(runtime: WorkspaceRuntime | None = None) -> Flask:
    """
    Build the Flask application.

    Args:
        runtime: Runtime hosting the workflow (a fresh one when omitted).

    Returns:
        Configured Flask app.
    """
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_bytes
    CORS(app, origins=CORS_ORIGINS)

    workspace = runtime or WorkspaceRuntime()
    app.extensions["research_lens_runtime"] = workspace

    @app.errorhandler(413)
    def too_large(_error):
        return jsonify({"error": "File is too large."}), 413

    @app.route("/api/health")
    def health():
        """Liveness check."""
        return jsonify({"status": "ok", "version": __version__})

    @app.route("/api/upload", methods=["POST"])
    def upload():
        """Extract the uploaded PDF's text and start analysing it."""
        file = request.files.get("file")
        if file is None or not file.filename:
            return jsonify({"error": NOT_PDF_MESSAGE}), 400
        if not is_pdf_upload(file.filename, file.mimetype):
            return jsonify({"error": NOT_PDF_MESSAGE}), 400

        try:
            text = extract_pdf_text(
                file.read(),
                max_pages=settings.max_pdf_pages,
                filename=file.filename,
            )
        except DocumentError as e:
            logger.warning(f"Rejected upload {file.filename!r}: {e}")
            return jsonify({"error": LOAD_FAILURE_MESSAGE}), 400

        if not text.strip():
            logger.warning(f"Rejected upload {file.filename!r}: no extractable text")
            return jsonify({"error": LOAD_FAILURE_MESSAGE}), 400

        generation = workspace.start_run(text)
        return jsonify({
            "generation": generation,
            "filename": file.filename,
            "textLength": len(text),
        }), 202

    @app.route("/api/workspace")
    def get_workspace():
        """Current workspace snapshot."""
        return jsonify(workspace.snapshot().to_json_dict())

    @app.route("/api/references", methods=["POST"])
    def references():
        """Extract references for the current upload (cached after the first call)."""
        try:
            refs = workspace.load_references()
        except WorkflowError as e:
            return jsonify({"error": e.message}), 409
        return jsonify({"references": [ref.to_json_dict() for ref in refs]})

    @app.route("/api/chat", methods=["POST"])
    def chat():
        """Answer a question about the analysed paper."""
        body = request.get_json(silent=True) or {}
        message = body.get("message")
        if not isinstance(message, str) or not message.strip():
            return jsonify({"error": "Message must be a non-empty string."}), 400
        thread_id = body.get("threadId") or DEFAULT_THREAD_ID

        try:
            reply = workspace.ask(message, thread_id=str(thread_id))
        except AnalysisError as e:
            return jsonify({"error": e.message}), 409
        except Exception as e:
            logger.error(f"Chat request failed: {e}")
            return jsonify(create_error_response(e, stage="chat")), 500

        return jsonify({"threadId": thread_id, "message": reply.to_json_dict()})

    @app.route("/api/chat/suggestions")
    def chat_suggestions():
        """Starter questions, plus a welcome message once a paper is analysed."""
        analysis = workspace.snapshot().analysis_result
        return jsonify({
            "questions": SUGGESTED_QUESTIONS,
            "welcome": welcome_message(analysis).to_json_dict() if analysis else None,
        })

    return app


def run_server(host: str | None = None, port: int | None = None, debug: bool = False) -> None:
    """Create the app and serve it until interrupted."""
    host = host or settings.server_host
    port = port or settings.server_port
    app = create_app()

    print("\n" + "=" * 60)
    print("Research Lens Server")
    print("=" * 60)
    print(f"\n🔎 API: http://{host}:{port}/api/health")
    print("\nPress Ctrl+C to stop\n")
    app.run(debug=debug, port=port, host=host, use_reloader=False)


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    run_server()
