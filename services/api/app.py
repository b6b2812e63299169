"""
Flask API application for tour data
"""

import logging
import sys
from pathlib import Path

from flasgger import Swagger
from flask import Flask, current_app, jsonify, request

REPO_ROOT = Path(__file__).resolve().parent.parent.parent
# When running as a script (e.g. `python services/api/app.py`), ensure repo root is on sys.path
# so `import config` (and `services.*`) work the same as when installed.
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import config  # noqa: E402
from services.common.logging_utils import setup_logging  # noqa: E402
from services.tours.errors import (  # noqa: E402
    ConfigurationError,
    MalformedInputError,
    RemoteFetchError,
    TourSheetError,
)
from services.tours.service import TourSheetService, get_service  # noqa: E402

setup_logging()
logger = logging.getLogger(__name__)

# Non-GET endpoints under /api/ that are allowed through
WRITE_ENDPOINTS = {"api_clear_cache"}

swagger_config = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec",
            "route": "/apispec.json",
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/api-docs/",
}

swagger_template = {
    "swagger": "2.0",
    "info": {
        "title": "Tours API",
        "description": "Tours published in the booking sheet. Read-only apart from cache control.",
        "version": "1.0.0",
    },
    "basePath": "/api",
    "schemes": ["http"],
    "securityDefinitions": {},
}


def _service() -> TourSheetService:
    return current_app.config["TOUR_SERVICE"]


def _error_response(message: str, error: TourSheetError, status: int):
    return jsonify({"error": message, "details": str(error), "tours": []}), status


def create_app(service: TourSheetService | None = None) -> Flask:
    """
    Build the API app around a tour service

    Args:
        service: Service to serve from. Defaults to the process-wide instance from config.
    """
    app = Flask(__name__)
    app.config["DEBUG"] = config.DEBUG
    app.json.ensure_ascii = False
    app.config["TOUR_SERVICE"] = service or get_service()

    Swagger(app, config=swagger_config, template=swagger_template)

    @app.before_request
    def only_get_allowed():
        """Reject non-GET requests to the API, except cache control"""
        if (
            request.method != "GET"
            and request.path.startswith("/api/")
            and request.endpoint not in WRITE_ENDPOINTS
        ):
            return jsonify({"error": "Only GET method is allowed"}), 405

    @app.errorhandler(ConfigurationError)
    def handle_configuration_error(error):
        logger.error("Tours API misconfigured: %s", error)
        return _error_response("Tours sheet is not configured", error, 500)

    @app.errorhandler(RemoteFetchError)
    def handle_remote_fetch_error(error):
        logger.error("Failed to fetch tours sheet: %s", error)
        return _error_response("Failed to fetch data from the tours sheet", error, 502)

    @app.errorhandler(MalformedInputError)
    def handle_malformed_input(error):
        logger.error("Tours sheet could not be parsed: %s", error)
        return _error_response("Tours sheet data is malformed", error, 502)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.route("/api/tours", methods=["GET"])
    def api_tours():
        """
        Get all tours or search tours
        ---
        tags:
          - Tours
        parameters:
          - name: q
            in: query
            type: string
            required: false
            description: Case-insensitive text searched in every tour field
        responses:
          200:
            description: List of tours
            schema:
              type: object
              properties:
                success:
                  type: boolean
                count:
                  type: integer
                tours:
                  type: array
                  items:
                    type: object
                    additionalProperties:
                      type: string
          500:
            description: Sheet URL not configured
          502:
            description: Sheet unreachable or malformed and nothing cached
        """
        query = request.args.get("q", "")

        if query:
            tours = _service().search_tours(query)
        else:
            tours = _service().fetch_tours()

        return jsonify({"success": True, "count": len(tours), "tours": tours})

    @app.route("/api/tours/stats", methods=["GET"])
    def api_tour_stats():
        """
        Tour count and cache status
        ---
        tags:
          - Tours
        responses:
          200:
            description: Stats
            schema:
              type: object
              properties:
                total_tours:
                  type: integer
                cache_status:
                  type: string
                  enum: [active, empty]
                cache_age_ms:
                  type: integer
                last_updated:
                  type: string
                  format: date-time
        """
        return jsonify(_service().get_stats().model_dump())

    @app.route("/api/tours/cache/clear", methods=["POST"])
    def api_clear_cache():
        """
        Drop the cached sheet so the next request downloads it again
        ---
        tags:
          - Tours
        responses:
          200:
            description: Cache cleared
        """
        _service().clear_cache()
        return jsonify({"success": True})

    @app.route("/api/tours/<tour_id>", methods=["GET"])
    def api_tour(tour_id: str):
        """
        Get one tour by row id or by the sheet's ID column
        ---
        tags:
          - Tours
        parameters:
          - name: tour_id
            in: path
            type: string
            required: true
        responses:
          200:
            description: The tour
          404:
            description: Tour not found
        """
        tour = _service().get_tour_by_id(tour_id)
        if tour is None:
            return jsonify({"error": "Tour not found"}), 404
        return jsonify({"tour": tour})

    return app


if __name__ == "__main__":
    app = create_app()
    logger.info("Starting API server on %s:%s", config.API_HOST, config.API_PORT)
    app.run(host=config.API_HOST, port=config.API_PORT, debug=config.DEBUG)
