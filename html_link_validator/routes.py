"""
Link Validator Flask Routes
===========================
API endpoints for checking the links of an HTML snippet or page.

Endpoints:
- POST /api/link-validator/check  - Check HTML; returns diagnostics and queued external links
- GET  /api/link-validator/health - Health check

External links are returned for the caller to resolve; the endpoint
never fetches remote content. Internal links resolve only inside the
configured API root (LV_API_ROOT); the request's ``path`` is relative
to it.
"""

import os
import time
from functools import wraps

from flask import Blueprint, Flask, g, jsonify, request

from . import __version__
from .checker import LinksChecker
from .config_logging import (
    LinkCheckError,
    ProcessingError,
    StructuredLogger,
    ValidationError,
    get_config,
    get_logger,
)
from .internal_resolver import ConfinedFileSystem
from .models import LinkCheckOptions

logger = get_logger('html_link_validator.routes')

lv_blueprint = Blueprint('link_validator', __name__)

# Option name -> accepted JSON type
OPTION_TYPES = {
    'allow_missing_href': bool,
    'allow_hash_href': bool,
    'ignore_empty_mailto': bool,
    'enforce_https': bool,
    'check_sri': bool,
    'assume_extension': str,
    'directory_index_file': str,
}

# Fixed by the server configuration, never by the request
SERVER_OPTIONS = ('root_dir',)


@lv_blueprint.before_request
def assign_correlation_id():
    g.correlation_id = StructuredLogger.new_correlation_id()


@lv_blueprint.after_request
def add_correlation_header(response):
    correlation_id = getattr(g, 'correlation_id', None)
    if correlation_id:
        response.headers['X-Correlation-ID'] = correlation_id
    return response


def handle_lv_errors(f):
    """Standard JSON error responses for link validator routes."""
    @wraps(f)
    def decorated(*args, **kwargs):
        start_time = time.time()
        try:
            result = f(*args, **kwargs)

            elapsed = time.time() - start_time
            if elapsed > 5.0:
                logger.warning(f"Slow link validator call: {f.__name__} took {elapsed:.1f}s")

            return result

        except LinkCheckError as e:
            if e.status_code >= 500:
                logger.error(f"{e.code} in {f.__name__}: {e.message}")
            else:
                logger.warning(f"{e.code} in {f.__name__}: {e.message}")
            return _error_response(e)
        except Exception as e:
            logger.exception(f"Unexpected error in {f.__name__}: {e}")
            return _error_response(ProcessingError(
                f'An unexpected error occurred: {type(e).__name__}', stage=f.__name__))
    return decorated


def _error_response(error: LinkCheckError):
    body = error.to_dict()
    body['error']['correlation_id'] = getattr(g, 'correlation_id', 'unknown')
    return jsonify(body), error.status_code


def _validate_options(options) -> dict:
    if options is None:
        return {}
    if not isinstance(options, dict):
        raise ValidationError("Field 'options' must be an object", field='options')

    for name in SERVER_OPTIONS:
        if name in options:
            raise ValidationError(f"Option '{name}' is set by the server", field=f'options.{name}')

    for name, expected in OPTION_TYPES.items():
        if name in options and not isinstance(options[name], expected):
            raise ValidationError(
                f"Option '{name}' must be a {expected.__name__}", field=f'options.{name}')

    domains = options.get('internal_domains', [])
    if not isinstance(domains, list) or not all(isinstance(d, str) for d in domains):
        raise ValidationError("Option 'internal_domains' must be a list of strings",
                              field='options.internal_domains')

    rules = options.get('ignore_urls', [])
    if not isinstance(rules, list) or not all(
            isinstance(r, str) or (isinstance(r, dict) and isinstance(r.get('pattern'), str))
            for r in rules):
        raise ValidationError("Option 'ignore_urls' must be a list of patterns or rule objects",
                              field='options.ignore_urls')
    return options


def _validate_path(path) -> str:
    if path is None:
        return ''
    if not isinstance(path, str):
        raise ValidationError("Field 'path' must be a string", field='path')
    if not path:
        return ''
    normalized = os.path.normpath(path)
    if os.path.isabs(path) or normalized == os.pardir or normalized.startswith(os.pardir + os.sep):
        raise ValidationError("Field 'path' must be relative to the API root", field='path')
    return normalized


@lv_blueprint.route('/api/link-validator/check', methods=['POST'])
@handle_lv_errors
def check_links():
    """
    Check the links of an HTML document.

    Request body (JSON):
        html: Markup to check (required)
        path: Location of the markup relative to the API root, used to resolve relative links
        options: LinkCheckOptions fields (allow_hash_href, enforce_https, ...)
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    html = data.get('html')
    if not isinstance(html, str) or not html.strip():
        raise ValidationError("Field 'html' is required", field='html')

    options = _validate_options(data.get('options'))
    path = _validate_path(data.get('path'))

    filesystem = ConfinedFileSystem(str(get_config().api_root))
    check_options = LinkCheckOptions.from_dict({**options, 'root_dir': filesystem.root})
    checker = LinksChecker(check_options, filesystem=filesystem)
    result = checker.check_html(html, path=path)

    return jsonify({
        'success': True,
        'data': {
            'diagnostics': [d.to_dict() for d in result.diagnostics],
            'external_checks': [c.to_dict() for c in result.external_checks],
        }
    })


@lv_blueprint.route('/api/link-validator/health', methods=['GET'])
def health():
    return jsonify({'success': True, 'status': 'ok', 'version': __version__})


def create_app() -> Flask:
    """Standalone app serving the link validator blueprint."""
    app = Flask(__name__)
    app.register_blueprint(lv_blueprint)
    return app
