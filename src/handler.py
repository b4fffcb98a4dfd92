"""
AWS Lambda handler for the portfolio contact API (API Gateway proxy).

Routes:
    POST    /api/contact  - contact form submission
    GET     /api/health   - service status
    GET     /api/config   - safe configuration summary (development only)
    OPTIONS *             - CORS preflight
"""

import base64
import json
import logging
import time
from typing import Dict, Any, Optional, Tuple

from config import APP_NAME, VERSION, ConfigurationError, ContactConfig
from domain.contact_pipeline import ContactPipeline
from domain.models import iso_timestamp
from integrations import create_transport

# Configure logging
logger = logging.getLogger()

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    formatter = logging.Formatter('%(levelname)s - %(name)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Load configuration and build the pipeline once per container (reused across invocations)
try:
    settings = ContactConfig.from_env()
except ConfigurationError as e:
    logger.error(f"Configuration error: {e}")
    raise

logger.setLevel(settings.python_log_level)

transport = create_transport(settings)
contact_pipeline = ContactPipeline.from_config(settings, transport)

logger.info(
    f"{APP_NAME} {VERSION} started: environment={settings.environment}, "
    f"transport={settings.transport}, "
    f"auto_reply={'enabled' if settings.auto_reply_enabled else 'disabled'}"
)


def _cors_headers() -> Dict[str, str]:
    return {
        'Access-Control-Allow-Origin': settings.allowed_origin,
        'Access-Control-Allow-Credentials': 'true',
    }


def _response(status_code: int, body: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    response_headers = {'Content-Type': 'application/json'}
    response_headers.update(_cors_headers())
    if headers:
        response_headers.update(headers)

    return {
        'statusCode': status_code,
        'headers': response_headers,
        'body': json.dumps(body) if body is not None else ''
    }


def _request_line(event: Dict[str, Any]) -> Tuple[str, str]:
    """Extract (method, path) from a REST API (v1) or HTTP API (v2) event."""
    http = event.get('requestContext', {}).get('http', {})
    method = event.get('httpMethod') or http.get('method') or 'GET'
    path = event.get('path') or event.get('rawPath') or '/'
    return method.upper(), path.rstrip('/') or '/'


def _client_id(event: Dict[str, Any]) -> str:
    request_context = event.get('requestContext', {})
    return (
        request_context.get('identity', {}).get('sourceIp')
        or request_context.get('http', {}).get('sourceIp')
        or 'unknown'
    )


def _parse_body(event: Dict[str, Any]) -> Any:
    """
    Decode the JSON request body. A missing body decodes to an empty object.

    Raises:
        ValueError: If the body is not valid JSON
    """
    body = event.get('body')
    if not body:
        return {}

    if event.get('isBase64Encoded'):
        body = base64.b64decode(body).decode('utf-8')
    return json.loads(body)


def contact(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Handle POST /api/contact."""
    try:
        payload = _parse_body(event)
    except ValueError as e:
        logger.info(f"Malformed contact request body: {e}")
        return _response(400, {
            'success': False,
            'error': 'Request body must be a JSON object.',
            'timestamp': iso_timestamp()
        })

    result = contact_pipeline.handle(_client_id(event), payload)
    return _response(result.status_code, result.body, result.headers)


def health_check(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Simple health check endpoint for monitoring.
    """
    return _response(200, {
        'status': 'healthy',
        'service': APP_NAME,
        'timestamp': iso_timestamp(),
        'environment': settings.environment,
        'version': VERSION,
        'autoReplyEnabled': settings.auto_reply_enabled,
        'stats': contact_pipeline.stats.to_dict()
    })


def config_summary(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Safe configuration info, only available in development."""
    if not settings.is_development:
        return _response(404, {'error': 'Not found', 'timestamp': iso_timestamp()})

    return _response(200, dict(
        settings.summary(),
        emailReady=transport.verify(),
        timestamp=iso_timestamp()
    ))


def preflight(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    return _response(204, headers={
        'Access-Control-Allow-Methods': 'GET,POST,OPTIONS',
        'Access-Control-Allow-Headers': 'Content-Type',
    })


ROUTES = {
    ('POST', '/api/contact'): contact,
    ('GET', '/api/health'): health_check,
    ('GET', '/api/config'): config_summary,
}


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Route an API Gateway proxy event to its endpoint.

    Args:
        event: API Gateway proxy event (REST v1 or HTTP API v2 format)
        context: Lambda context

    Returns:
        API Gateway proxy response dict
    """
    start_time = time.time()
    method, path = _request_line(event)
    client_id = _client_id(event)
    logger.info(f"{method} {path} - IP: {client_id}")

    try:
        if method == 'OPTIONS':
            response = preflight(event, context)
        else:
            route = ROUTES.get((method, path))
            if route is None:
                response = _response(404, {
                    'success': False,
                    'error': 'Route not found',
                    'path': path,
                    'timestamp': iso_timestamp()
                })
            else:
                response = route(event, context)

    except Exception as e:
        logger.error(f"Unhandled error for {method} {path}: {e}", exc_info=True)
        response = _response(500, {
            'success': False,
            'error': 'Internal server error' if settings.is_production else str(e),
            'timestamp': iso_timestamp()
        })

    duration_ms = (time.time() - start_time) * 1000
    logger.info(f"{method} {path} {response['statusCode']} - {duration_ms:.0f}ms")
    return response
