"""
D&D 5e Named Encounter Generator Web Application

A Flask-based JSON API that builds XP-budgeted encounters with named
creatures, tarot motivations and terrain, and keeps per-session saves.
"""

# Standard library imports
import logging
import os
from datetime import timedelta
from typing import Dict, Any, Tuple, Optional
from uuid import uuid4

# Third-party imports
from flask import Flask, Response, request, session, jsonify
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import HTTPException

# Local imports
from controllers.encounter_controller import EncounterController
from models.encounter_builder import CATEGORIES, CATEGORY_LABELS
from models.party_budget import DIFFICULTIES
from utils.exceptions import AppError, ValidationError
from utils.logging import log_exception
from utils.monitoring import get_monitoring_snapshot

# Constants - Application Configuration
DEFAULT_SECRET_KEY = 'dev-secret-key'
SESSION_LIFETIME_HOURS = 24

# Constants - Rate Limiting
RATE_LIMIT_PER_DAY = "100000 per day"
RATE_LIMIT_PER_HOUR = "10000 per hour"
RATE_LIMIT_BUDGET = "60 per minute"
RATE_LIMIT_GENERATE = "30 per minute"
RATE_LIMIT_SAVED = "60 per minute"
RATE_LIMIT_METRICS = "30 per minute"

# Initialize logger
logger = logging.getLogger(__name__)

# Initialize Flask application
app = Flask(__name__)

# Configure application
def configure_app(app: Flask) -> None:
    """
    Configure Flask application with security and session settings.

    Args:
        app: Flask application instance
    """
    app.secret_key = os.environ.get('FLASK_SECRET_KEY', DEFAULT_SECRET_KEY)

    if app.secret_key == DEFAULT_SECRET_KEY:
        if not app.debug:
            logger.error(
                "CRITICAL SECURITY WARNING: Using default secret key! "
                "Set FLASK_SECRET_KEY environment variable in production!"
            )
        else:
            logger.warning("Using default development secret key - DO NOT use in production!")

    # In production, set FLASK_SESSION_COOKIE_SECURE=true
    app.config['SESSION_COOKIE_SECURE'] = os.environ.get('FLASK_SESSION_COOKIE_SECURE', 'false').lower() == 'true'
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(hours=SESSION_LIFETIME_HOURS)
    app.json.sort_keys = False

    logger.info(f"Application configured: debug={app.debug}, session_cookie_secure={app.config['SESSION_COOKIE_SECURE']}")

configure_app(app)

# Initialize rate limiting
limiter = Limiter(
    app=app,
    key_func=get_remote_address,
    default_limits=[RATE_LIMIT_PER_DAY, RATE_LIMIT_PER_HOUR],
    storage_uri="memory://"
)

# Initialize controllers
encounter_controller = EncounterController()

# Helper Functions

def get_json_body(required: bool = True) -> Optional[Dict[str, Any]]:
    """
    Read the JSON request body.

    Raises:
        ValidationError: If a body is required but missing, or is not an object
    """
    data = request.get_json(silent=True)
    if data is None:
        if required:
            raise ValidationError("Request body must be JSON")
        return None
    if not isinstance(data, dict):
        raise ValidationError("Invalid input format")
    return data

def current_session_id() -> str:
    return session['session_id']

# Security Headers

@app.after_request
def add_security_headers(response: Response) -> Response:
    """Add security headers to all responses."""
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-XSS-Protection'] = '1; mode=block'
    response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
    return response

# Session Management

@app.before_request
def ensure_session() -> None:
    """
    Ensure session ID exists before processing requests.

    Creates a new session ID and database session if one doesn't exist.
    """
    session.permanent = True
    if 'session_id' not in session:
        session['session_id'] = str(uuid4())
        try:
            encounter_controller.store.create_session(session['session_id'])
            logger.info(f"Created new session: {session['session_id']}")
        except Exception as e:
            logger.error(f"Failed to create database session: {e}")
            log_exception(e)

# Main Routes

@app.route('/')
def index() -> Any:
    """Describe the service and the values its endpoints accept."""
    return jsonify({
        'service': 'Named Encounter Generator',
        'categories': {tag: CATEGORY_LABELS[tag] for tag in CATEGORIES},
        'difficulties': DIFFICULTIES,
        'endpoints': [
            'POST /api/party/budget',
            'POST /api/encounters/generate',
            'GET /api/encounters/current',
            'GET|POST|DELETE /api/encounters/saved',
            'GET|DELETE /api/encounters/saved/<id>',
            'GET /api/metrics',
        ]
    })

@app.route('/favicon.ico')
def favicon() -> Response:
    """Return 204 No Content for favicon requests to prevent 404 errors."""
    return Response(status=204)

@app.route('/api/party/budget', methods=['POST'])
@limiter.limit(RATE_LIMIT_BUDGET)
def api_party_budget() -> Any:
    """
    Calculate the XP budget for a party.

    Returns:
        JSON response with total_xp, difficulty, party_levels and party_size
    """
    data = get_json_body()
    budget = encounter_controller.calculate_budget(data.get('party'), data.get('difficulty', 'High'))
    return jsonify(budget)

@app.route('/api/encounters/generate', methods=['POST'])
@limiter.limit(RATE_LIMIT_GENERATE)
def api_generate_encounter() -> Tuple[Any, int]:
    """
    Generate a named encounter.

    Returns:
        JSON encounter with 200, or {error, type} with 400 when no roster fits
    """
    data = get_json_body()
    encounter = encounter_controller.generate_for_session(current_session_id(), data)
    if 'error' in encounter:
        return jsonify(encounter), 400
    return jsonify(encounter), 200

@app.route('/api/encounters/current', methods=['GET'])
def api_current_encounter() -> Tuple[Any, int]:
    encounter = encounter_controller.get_current_encounter(current_session_id())
    if encounter is None:
        return jsonify({'error': 'No encounter generated yet', 'type': 'NotFound'}), 404
    return jsonify(encounter), 200

@app.route('/api/encounters/saved', methods=['GET'])
@limiter.limit(RATE_LIMIT_SAVED)
def api_list_saved() -> Any:
    return jsonify(encounter_controller.list_saved_encounters(current_session_id()))

@app.route('/api/encounters/saved', methods=['POST'])
@limiter.limit(RATE_LIMIT_SAVED)
def api_save_encounter() -> Tuple[Any, int]:
    """
    Save an encounter for this session.

    The body may hold the encounter itself or {'encounter': {...}}; with no
    body the current encounter is saved.
    """
    data = get_json_body(required=False)
    encounter = data.get('encounter', data) if data else None
    encounter_id = encounter_controller.save_encounter(current_session_id(), encounter)
    return jsonify({'id': encounter_id}), 201

@app.route('/api/encounters/saved/<encounter_id>', methods=['GET'])
@limiter.limit(RATE_LIMIT_SAVED)
def api_get_saved(encounter_id: str) -> Tuple[Any, int]:
    encounter = encounter_controller.get_saved_encounter(current_session_id(), encounter_id)
    if encounter is None:
        return jsonify({'error': f'Saved encounter {encounter_id} not found', 'type': 'NotFound'}), 404
    return jsonify(encounter), 200

@app.route('/api/encounters/saved/<encounter_id>', methods=['DELETE'])
@limiter.limit(RATE_LIMIT_SAVED)
def api_delete_saved(encounter_id: str) -> Tuple[Any, int]:
    if not encounter_controller.delete_saved_encounter(current_session_id(), encounter_id):
        return jsonify({'error': f'Saved encounter {encounter_id} not found', 'type': 'NotFound'}), 404
    return jsonify({'deleted': encounter_id}), 200

@app.route('/api/encounters/saved', methods=['DELETE'])
@limiter.limit(RATE_LIMIT_SAVED)
def api_clear_saved() -> Any:
    count = encounter_controller.clear_saved_encounters(current_session_id())
    return jsonify({'deleted': count})

@app.route('/api/metrics', methods=['GET'])
@limiter.limit(RATE_LIMIT_METRICS)
def api_metrics() -> Any:
    """Generation timings, category counters, errors and system stats."""
    return jsonify(get_monitoring_snapshot())

# Health Check

@app.route('/healthz')
def healthz() -> Tuple[str, int]:
    """
    Health check endpoint for deployment monitoring.

    Returns:
        Simple 'ok' response with 200 status
    """
    return 'ok', 200

# Error Handlers

@app.errorhandler(AppError)
def handle_app_error(error: AppError) -> Tuple[Any, int]:
    log_exception(error)
    return jsonify({
        'error': str(error),
        'type': error.__class__.__name__
    }), 400

@app.errorhandler(Exception)
def handle_unexpected_error(error: Exception) -> Tuple[Any, int]:
    """
    Handle unexpected errors.

    HTTP errors (404, 405, 429) keep their status; anything else is a 500.
    """
    if isinstance(error, HTTPException):
        return jsonify({
            'error': error.description,
            'type': error.__class__.__name__
        }), error.code

    log_exception(error)
    return jsonify({
        'error': 'An unexpected error occurred.',
        'type': error.__class__.__name__
    }), 500

# Application Entry Point

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
