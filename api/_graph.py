import logging
from urllib.parse import quote

import requests

from api._feeds import normalize_media, normalize_posts

logger = logging.getLogger("api.graph")

GRAPH_BASE = 'https://graph.facebook.com'

IG_ACCOUNT_FIELDS = 'instagram_business_account{id,username}'
IG_MEDIA_FIELDS = (
    'id,caption,media_type,media_url,permalink,thumbnail_url,timestamp,'
    'children{media_type,media_url,thumbnail_url}'
)
FB_POST_FIELDS = (
    'id,message,permalink_url,created_time,is_published,full_picture,'
    'attachments{media_type,media,url,unshimmed_url,target,subattachments{media,url,target}}'
)

VIDEO_URL_MARKERS = ('/videos/', '/reel/')


class UpstreamError(Exception):
    """
    A primary Graph API call came back with a non-success status.

    `status` is the upstream HTTP code and is only logged; the API answers 502.
    """

    def __init__(self, message: str, status: int = 502, status_text: str = '', details=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.status_text = status_text
        self.details = details


def graph_url(version: str, *segments: str) -> str:
    path = '/'.join(quote(str(s), safe='') for s in segments)
    return f"{GRAPH_BASE}/{version}/{path}"


def read_json(resp, context: str = '') -> dict:
    try:
        data = resp.json()
    except ValueError as e:
        logger.warning("[%s] JSON parse error: %s", context or 'Graph', e)
        return {}
    return data if isinstance(data, dict) else {}


def _upstream_message(data: dict, resp) -> str:
    err = data.get('error')
    message = err.get('message') if isinstance(err, dict) else None
    return message or f"Unexpected status {resp.status_code}"


def _raise_for_upstream(resp, data: dict, what: str) -> None:
    if resp.ok:
        return
    message = _upstream_message(data, resp)
    logger.error("[%s] upstream status %s: %s", what, resp.status_code, message)
    raise UpstreamError(
        f"{what} fetch failed: {message}",
        status=resp.status_code,
        status_text=getattr(resp, 'reason', '') or '',
        details=data.get('error') if isinstance(data.get('error'), dict) else message,
    )


class GraphClient:
    def __init__(self, token: str, version: str = 'v19.0', timeout: float = 20.0):
        self.token = token
        self.version = version
        self.timeout = timeout

    def _get(self, url: str, params: dict):
        query = dict(params)
        query['access_token'] = self.token
        return requests.get(url, params=query, timeout=self.timeout)

    def get_ig_user_id(self, page_id: str):
        resp = self._get(graph_url(self.version, page_id), {'fields': IG_ACCOUNT_FIELDS})
        data = read_json(resp, 'IG user id')
        if not resp.ok:
            logger.warning("[IG user id] lookup failed with status %s", resp.status_code)
            return None
        account = data.get('instagram_business_account')
        ig_id = account.get('id') if isinstance(account, dict) else None
        return str(ig_id) if ig_id else None

    def get_ig_media(self, ig_user_id: str, limit: int):
        resp = self._get(
            graph_url(self.version, ig_user_id, 'media'),
            {'fields': IG_MEDIA_FIELDS, 'limit': str(limit)},
        )
        data = read_json(resp, 'IG media')
        _raise_for_upstream(resp, data, 'IG media')
        return normalize_media(data.get('data'))

    def get_fb_posts(self, page_id: str, limit: int):
        resp = self._get(
            graph_url(self.version, page_id, 'posts'),
            {'fields': FB_POST_FIELDS, 'limit': str(limit)},
        )
        data = read_json(resp, 'FB posts')
        _raise_for_upstream(resp, data, 'FB posts')
        return normalize_posts(data.get('data'), limit)

    def get_embed_html(self, target_url: str, maxwidth=None, omitscript: bool = False) -> str:
        endpoint = 'oembed_video' if any(m in target_url for m in VIDEO_URL_MARKERS) else 'oembed_post'
        params = {'url': target_url}
        if maxwidth:
            params['maxwidth'] = str(maxwidth)
        if omitscript:
            params['omitscript'] = 'true'
        resp = self._get(graph_url(self.version, endpoint), params)
        data = read_json(resp, 'FB embed')
        _raise_for_upstream(resp, data, 'FB embed')
        html = data.get('html')
        if not isinstance(html, str) or not html:
            raise UpstreamError('FB embed fetch failed: no html in response', status=resp.status_code)
        return html
