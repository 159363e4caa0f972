import logging
import math

from flask import Flask, current_app, jsonify, render_template, request
from werkzeug.exceptions import RequestEntityTooLarge

import processors
from config import load_config
from errors import EditorError, InvalidRequestError
from log_utils import setup_logging
from session import AddEffect, EditorSession, SetValue, Shutdown, Upload

logger = logging.getLogger(__name__)

VERSION = "0.1.0-dev"


def create_app(config=None, session=None):
    """Build the app around a single editor session."""
    config = config or load_config()
    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = config['server']['max_content_length']
    app.config['EDITOR'] = config

    # One session per mounted UI, reachable from every handler
    app.extensions['editor_session'] = session or EditorSession.from_config(config)

    register_routes(app)
    return app


def get_session():
    return current_app.extensions['editor_session']


def _data_url(data):
    if data is None:
        return None
    return processors.to_data_url(data, current_app.config['EDITOR']['output']['format'])


def _images(render_state):
    return {
        'preview': _data_url(render_state.preview),
        'output': _data_url(render_state.output),
    }


def _json_payload():
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidRequestError("request body must be a JSON object")
    return payload


def _read_value(payload):
    if 'value' not in payload:
        raise InvalidRequestError("missing 'value'")
    try:
        value = float(payload['value'])
    except (TypeError, ValueError):
        raise InvalidRequestError(f"value must be a number, got {payload['value']!r}") from None
    if not math.isfinite(value):
        raise InvalidRequestError(f"value must be finite, got {value}")
    return value


def register_routes(app):
    @app.errorhandler(EditorError)
    def handle_editor_error(e):
        logger.warning(f"Rejected {request.method} {request.path}: {e}")
        return jsonify({
            'status': 'error',
            'error': e.__class__.__name__,
            'message': str(e),
        }), e.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        logger.warning(f"Rejected {request.method} {request.path}: upload too large")
        return jsonify({
            'status': 'error',
            'error': 'RequestEntityTooLarge',
            'message': f"upload exceeds {current_app.config['MAX_CONTENT_LENGTH']} bytes",
        }), 413

    @app.route('/')
    def index():
        session = get_session()
        return render_template('index.html', effects=session.catalog.list_available(),
                               closed=session.closed, version=VERSION)

    @app.route('/effects', methods=['GET'])
    def list_effects():
        kinds = get_session().catalog.list_available()
        return jsonify({'status': 'success', 'effects': [kind.describe() for kind in kinds]})

    @app.route('/upload', methods=['POST'])
    def upload():
        f = request.files.get('image')
        if f:
            event = Upload(f.read(), f.mimetype)
        else:
            payload = _json_payload()
            if not payload.get('image'):
                raise InvalidRequestError("no image provided")
            event = Upload(str(payload['image']))

        state = get_session().dispatch(event)
        return jsonify({'status': 'success', **_images(state)})

    @app.route('/effects', methods=['POST'])
    def add_effect():
        payload = _json_payload()
        if not isinstance(payload.get('kind'), str) or not payload['kind']:
            raise InvalidRequestError("'kind' must be a non-empty string")
        value = _read_value(payload) if 'value' in payload else 0

        state = get_session().dispatch(AddEffect(payload['kind'], value))
        control = next(c for c in state.controls if c.id == state.added.id)
        return jsonify({
            'status': 'success',
            'control': control.to_dict(),
            'html': render_template('_control.html', control=control),
            'output': _images(state)['output'],
        }), 201

    @app.route('/effects/<effect_id>', methods=['POST'])
    def set_value(effect_id):
        payload = _json_payload()
        state = get_session().dispatch(SetValue(effect_id, _read_value(payload)))
        return jsonify({'status': 'success', 'output': _images(state)['output']})

    @app.route('/shutdown', methods=['POST'])
    def shutdown():
        get_session().dispatch(Shutdown())
        return jsonify({'status': 'success', 'message': 'app is closed'})


if __name__ == '__main__':
    config = load_config()
    setup_logging(config['logging']['level'])
    server = config['server']
    logger.info(f"Starting effects editor {VERSION} on http://{server['host']}:{server['port']}")
    # Events are processed one at a time
    create_app(config).run(host=server['host'], port=server['port'],
                           debug=server['debug'], threaded=False)
