from api._shared import PREFLIGHT_MAX_AGE, cors_headers, json_response, load_settings


def handler(request):
    # Ultra-light health check - no Flask/requests imports
    headers = cors_headers(load_settings(), request.headers.get('Origin', ''))
    if request.method == "OPTIONS":
        headers['Access-Control-Max-Age'] = PREFLIGHT_MAX_AGE
        return ('', 204, headers)
    return json_response({"ok": True}, 200, headers)
