from flask import Flask, request
from werkzeug.exceptions import HTTPException

from api._gallery import resolve_gallery
from api._graph import GraphClient, UpstreamError
from api._shared import (
    FB_DEFAULT_LIMIT,
    IG_DEFAULT_LIMIT,
    PREFLIGHT_MAX_AGE,
    cors_headers,
    error_body,
    json_response,
    load_settings,
    logger,
    parse_limit,
)

_TRUTHY = ('1', 'true', 'yes')


def _manifest_source(settings):
    if settings.manifest_text.strip():
        return settings.manifest_text
    if settings.manifest_path:
        try:
            with open(settings.manifest_path, encoding='utf-8') as f:
                return f.read()
        except OSError as e:
            logger.warning("[Gallery] cannot read manifest %s: %s", settings.manifest_path, e)
    return None


def create_app(settings=None) -> Flask:
    settings = settings or load_settings()
    app = Flask(__name__)

    def graph() -> GraphClient:
        return GraphClient(settings.page_token, settings.graph_version, settings.graph_timeout_s)

    @app.before_request
    def preflight():
        if request.method == 'OPTIONS':
            return ('', 204, {'Access-Control-Max-Age': PREFLIGHT_MAX_AGE})
        return None

    @app.after_request
    def add_cors(resp):
        for k, v in cors_headers(settings, request.headers.get('Origin', '')).items():
            resp.headers[k] = v
        return resp

    @app.errorhandler(UpstreamError)
    def upstream_failed(e):
        logger.warning("[API] upstream status %s on %s", e.status, request.path)
        return json_response(error_body(e.message, e.details, e.status_text), 502)

    @app.errorhandler(HTTPException)
    def http_error(e):
        if e.code == 404:
            return json_response(error_body('Not found'), 404)
        if e.code == 405:
            return json_response(error_body('Method not allowed'), 405)
        return json_response(error_body(e.name), e.code or 500)

    @app.errorhandler(Exception)
    def internal_error(e):
        logger.exception("[API] unhandled error on %s", request.path)
        return json_response(error_body('Internal error'), 500)

    @app.get('/api/ig/media')
    def api_ig_media():
        page_id = (request.args.get('page_id') or '').strip()
        limit = parse_limit(request.args.get('limit'), IG_DEFAULT_LIMIT)
        if not page_id or not settings.page_token:
            return json_response({'items': []})
        client = graph()
        ig_id = client.get_ig_user_id(page_id)
        if not ig_id:
            return json_response({'items': []})
        items = client.get_ig_media(ig_id, limit)
        return json_response({'items': [m.to_dict() for m in items]})

    @app.get('/api/fb/posts')
    def api_fb_posts():
        page_id = (request.args.get('page_id') or '').strip()
        limit = parse_limit(request.args.get('limit'), FB_DEFAULT_LIMIT)
        if not page_id or not settings.page_token:
            return json_response({'items': []})
        posts = graph().get_fb_posts(page_id, limit)
        return json_response({'items': [p.to_dict() for p in posts]})

    @app.get('/api/fb/embed')
    def api_fb_embed():
        target = (request.args.get('url') or '').strip()
        if not target:
            return json_response(error_body('Missing url parameter'), 400)
        if not settings.page_token:
            return json_response(error_body('Missing access token'), 500)
        maxwidth = parse_limit(request.args.get('maxwidth'), 0, maximum=10_000) or None
        omitscript = str(request.args.get('omitscript') or '').lower() in _TRUTHY
        html = graph().get_embed_html(target, maxwidth=maxwidth, omitscript=omitscript)
        return json_response({'html': html})

    @app.get('/api/gallery')
    def api_gallery():
        items = resolve_gallery(_manifest_source(settings), prefix=settings.gallery_prefix)
        return json_response({'items': items})

    @app.get('/api/health')
    def api_health():
        return json_response({'ok': True})

    return app


# Vercel: export a WSGI Flask app named `app` with ONLY API routes (no static serving)
app = create_app()
