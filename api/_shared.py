import json
import logging
import os
import re
from dataclasses import dataclass

logger = logging.getLogger("api")
logger.setLevel(logging.INFO)

MAX_LIMIT = 50
IG_DEFAULT_LIMIT = 9
FB_DEFAULT_LIMIT = 6

DEFAULT_ALLOWED_ORIGINS = 'https://exploride.pl,https://www.exploride.pl'

CORS_METHODS = 'GET,OPTIONS'
CORS_HEADERS = 'Content-Type'
PREFLIGHT_MAX_AGE = '86400'


@dataclass(frozen=True)
class Settings:
    page_token: str
    allowed_origins: frozenset
    primary_origin: str
    graph_version: str = 'v19.0'
    graph_timeout_s: float = 20.0
    manifest_text: str = ''
    manifest_path: str = ''
    gallery_prefix: str = 'gallery/'


def _split_origins(raw: str):
    return [o.strip().rstrip('/') for o in (raw or '').split(',') if o.strip()]


def load_settings(environ=None) -> Settings:
    env = os.environ if environ is None else environ
    origins = _split_origins(env.get('ALLOWED_ORIGINS', DEFAULT_ALLOWED_ORIGINS))
    if not origins:
        origins = _split_origins(DEFAULT_ALLOWED_ORIGINS)
    try:
        timeout = float(env.get('GRAPH_TIMEOUT_S', '20').strip())
    except ValueError:
        timeout = 20.0
    return Settings(
        page_token=env.get('FB_PAGE_TOKEN', '').strip(),
        allowed_origins=frozenset(origins),
        primary_origin=origins[0],
        graph_version=env.get('GRAPH_API_VERSION', 'v19.0').strip() or 'v19.0',
        graph_timeout_s=timeout,
        manifest_text=env.get('STATIC_CONTENT_MANIFEST', ''),
        manifest_path=env.get('STATIC_MANIFEST_PATH', '').strip(),
        gallery_prefix=env.get('GALLERY_PREFIX', 'gallery/').strip() or 'gallery/',
    )


_LEADING_INT = re.compile(r'\s*([+-]?[0-9]+)')


def parse_limit(raw, default: int, maximum: int = MAX_LIMIT) -> int:
    """Leading integer of `raw`, or `default` when absent or not positive; capped at `maximum`."""
    m = _LEADING_INT.match(str(raw)) if raw is not None else None
    if not m:
        return default
    value = int(m.group(1))
    if value <= 0:
        return default
    return min(value, maximum)


def cors_headers(settings: Settings, origin: str = '') -> dict:
    origin = (origin or '').rstrip('/')
    allow = origin if origin in settings.allowed_origins else settings.primary_origin
    return {
        "Access-Control-Allow-Origin": allow,
        "Access-Control-Allow-Methods": CORS_METHODS,
        "Access-Control-Allow-Headers": CORS_HEADERS,
        "Vary": "Origin",
    }


def json_response(data: dict, status: int = 200, extra_headers: dict | None = None):
    body = json.dumps(data, ensure_ascii=False)
    headers = {
        "Content-Type": "application/json; charset=utf-8",
        "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    }
    if extra_headers:
        headers.update(extra_headers)
    return (body, status, headers)


def error_body(message: str, details=None, status_text: str = '') -> dict:
    body = {'error': message}
    if details is not None:
        body['details'] = details
    if status_text:
        body['statusText'] = status_text
    return body
