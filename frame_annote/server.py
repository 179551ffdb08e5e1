# frame_annote/server.py
from __future__ import annotations

import logging
import os
from typing import Optional

from flask import Blueprint, Flask, current_app, jsonify, request, send_from_directory
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

from .config import ServerConfig
from .errors import AnnotateError, InvalidInput, NotFound
from .store import MISSING_FIELDS_MESSAGE, AnnotationStore

logger = logging.getLogger(__name__)

api = Blueprint("annotations", __name__)


def _store() -> AnnotationStore:
    return current_app.extensions["annotation_store"]


# -----------------------------
# Routes
# -----------------------------

@api.route("/health")
def health():
    return jsonify({"status": "ok"})


@api.route("/videos")
def list_videos():
    return jsonify([v.to_dict() for v in _store().list_videos()])


@api.route("/videos/<video_id>/annotations", methods=["POST"])
def create_annotation(video_id):
    timestamp_ms = request.form.get("timestamp_ms")
    notes = request.form.get("notes", "")
    upload = request.files.get("image")

    if not timestamp_ms or upload is None:
        return jsonify({"error": MISSING_FIELDS_MESSAGE}), 400

    image = upload.read()
    try:
        rec = _store().create(video_id, timestamp_ms, image, notes)
    except InvalidInput as e:
        return jsonify({"error": str(e)}), 400
    except AnnotateError:
        logger.exception("Error creating annotation")
        return jsonify({"error": "Failed to create annotation"}), 500
    return jsonify(rec.to_dict()), 201


@api.route("/videos/<video_id>/annotations", methods=["GET"])
def list_annotations(video_id):
    try:
        recs = _store().list(video_id)
    except AnnotateError:
        logger.exception("Error fetching annotations")
        return jsonify({"error": "Failed to fetch annotations"}), 500
    return jsonify([r.to_dict() for r in recs])


@api.route("/videos/<video_id>/annotations/<annotation_id>", methods=["GET"])
def get_annotation(video_id, annotation_id):
    try:
        rec = _store().get(video_id, annotation_id)
    except NotFound:
        return jsonify({"error": "Annotation not found"}), 404
    except AnnotateError:
        logger.exception("Error fetching annotation")
        return jsonify({"error": "Failed to fetch annotation"}), 500
    return jsonify(rec.to_dict())


@api.route("/videos/<video_id>/annotations/<annotation_id>", methods=["DELETE"])
def delete_annotation(video_id, annotation_id):
    try:
        _store().delete(video_id, annotation_id)
    except NotFound:
        return jsonify({"error": "Annotation not found"}), 404
    except AnnotateError:
        logger.exception("Error deleting annotation")
        return jsonify({"error": "Failed to delete annotation"}), 500
    return jsonify({"message": "Annotation deleted successfully", "deleted": True})


# -----------------------------
# App factory
# -----------------------------

def create_app(config: Optional[ServerConfig] = None, store: Optional[AnnotationStore] = None) -> Flask:
    """
    Build the Flask app. JSON routes live under config.api_prefix; annotation
    images are served from config.storage_url_prefix.
    """
    cfg = config or ServerConfig.from_env()
    if store is None:
        store = AnnotationStore(cfg.data_dir, url_prefix=cfg.storage_url_prefix)
    store.initialize()

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = int(cfg.max_upload_bytes)
    app.extensions["annotation_store"] = store
    app.extensions["frame_annote_config"] = cfg

    CORS(app, origins=cfg.cors_origins)
    app.register_blueprint(api, url_prefix=cfg.api_prefix or None)

    storage_root = os.path.abspath(store.storage_dir)

    @app.route(f"{cfg.storage_url_prefix}/<path:filename>")
    def storage(filename):
        return send_from_directory(storage_root, filename)

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(_e):
        return jsonify({"error": "Image exceeds the upload size limit"}), 413

    @app.errorhandler(404)
    def not_found(_e):
        return jsonify({"error": "Not found"}), 404

    logger.info("Annotation store at %s", os.path.abspath(store.data_dir))
    return app


def run_server(config: ServerConfig) -> None:
    app = create_app(config)
    logger.info("Serving annotations on http://%s:%d%s", config.host, config.port, config.api_prefix)
    app.run(host=config.host, port=config.port, debug=False)
