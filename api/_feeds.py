"""
Normalization of Graph API feed payloads into display-ready items.

Everything here is a pure function of its input: upstream payloads arrive as
decoded JSON and any field may be missing or carry the wrong type. A missing
field reads as absent; an item that cannot be resolved is dropped.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

IMAGE = 'IMAGE'
VIDEO = 'VIDEO'
CAROUSEL_ALBUM = 'CAROUSEL_ALBUM'

PERMALINK_FIELDS = ('permalink_url', 'permalink', 'link')

# (container, path) pairs in priority order; container None means the attachment itself
ATTACHMENT_URL_FIELDS = (
    ('media', ('image', 'src')),
    ('media', ('thumbnail_src',)),
    ('media', ('thumbnail_url',)),
    ('media', ('preview_image_url',)),
    ('media', ('src',)),
    ('media', ('source',)),
    (None, ('unshimmed_url',)),
    (None, ('url',)),
    ('target', ('url',)),
)


@dataclass(frozen=True)
class DisplayMediaItem:
    id: str
    type: str
    caption: str
    src: str
    permalink: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'caption': self.caption,
            'type': self.type,
            'src': self.src,
            'permalink': self.permalink,
            'timestamp': self.timestamp,
        }


@dataclass(frozen=True)
class DisplayPost:
    id: str
    message: str
    permalink_url: str
    created_time: str
    is_published: bool = True
    media: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'message': self.message,
            'permalink_url': self.permalink_url,
            'created_time': self.created_time,
            'is_published': self.is_published,
            'media': [{'src': src} for src in self.media],
        }


def _get(obj, *path):
    cur = obj
    for key in path:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def _text(value) -> str:
    if value is None:
        return ''
    return value if isinstance(value, str) else str(value)


def _present(value) -> bool:
    # an empty child object still counts as a child
    return isinstance(value, dict) or bool(value)


def _data_list(container) -> list:
    # Graph edges come wrapped as {"data": [...]}; tolerate a bare list too.
    if isinstance(container, dict):
        container = container.get('data')
    return container if isinstance(container, list) else []


_OFFSET_NO_COLON = re.compile(r'([+-][0-9]{2})([0-9]{2})$')
_FRACTION = re.compile(r'\.([0-9]+)')


def _six_digit_fraction(m) -> str:
    return '.' + m.group(1)[:6].ljust(6, '0')


def parse_timestamp(value) -> float:
    """Seconds since the epoch for an ISO-8601 string; 0.0 when absent or unparseable."""
    if not isinstance(value, str) or not value.strip():
        return 0.0
    s = value.strip()
    if s.endswith(('Z', 'z')):
        s = s[:-1] + '+00:00'
    s = _FRACTION.sub(_six_digit_fraction, s, count=1)
    s = _OFFSET_NO_COLON.sub(r'\1:\2', s)
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return 0.0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def _by_recency(items, stamp):
    # sorted() is stable, so equal timestamps keep their input order
    return sorted(items, key=lambda item: -parse_timestamp(stamp(item)))


def _resolve_media_src(raw: dict) -> Optional[str]:
    kind = raw.get('media_type')
    if kind == IMAGE:
        return raw.get('media_url') or None
    if kind == VIDEO:
        return raw.get('thumbnail_url') or raw.get('media_url') or None
    if kind == CAROUSEL_ALBUM:
        child = next((c for c in _data_list(raw.get('children')) if _present(c)), None)
        if isinstance(child, dict):
            return child.get('thumbnail_url') or child.get('media_url') or None
    return None


def normalize_media_item(raw) -> Optional[DisplayMediaItem]:
    if not isinstance(raw, dict):
        return None
    src = _resolve_media_src(raw)
    if not isinstance(src, str) or not src:
        return None
    return DisplayMediaItem(
        id=_text(raw.get('id')),
        type=_text(raw.get('media_type')),
        caption=_text(raw.get('caption')),
        src=src,
        permalink=_text(raw.get('permalink')),
        timestamp=_text(raw.get('timestamp')),
    )


def normalize_media(raw_items) -> List[DisplayMediaItem]:
    # The limit was already applied to the upstream request; not re-applied here.
    items = []
    for raw in raw_items if isinstance(raw_items, list) else []:
        item = normalize_media_item(raw)
        if item is not None:
            items.append(item)
    return _by_recency(items, lambda m: m.timestamp)


def _is_http_url(value) -> bool:
    return isinstance(value, str) and value.startswith('http')


def _attachment_candidate(node: dict) -> Optional[str]:
    for container, path in ATTACHMENT_URL_FIELDS:
        base = node if container is None else node.get(container)
        value = _get(base, *path)
        if _is_http_url(value):
            return value
    return None


def extract_attachment_media(attachment, seen: set, out: list) -> None:
    """
    Walk an attachment and its nested subattachments depth first, appending at
    most one URL per node to `out`. URLs already in `seen` are skipped.
    """
    stack = [attachment]
    while stack:
        node = stack.pop()
        if not isinstance(node, dict):
            continue
        src = _attachment_candidate(node)
        if src and src not in seen:
            seen.add(src)
            out.append(src)
        subs = _data_list(node.get('subattachments'))
        stack.extend(reversed(subs))


def collect_post_media(post: dict) -> Tuple[str, ...]:
    seen: set = set()
    out: List[str] = []
    picture = post.get('full_picture')
    if isinstance(picture, str) and picture:
        seen.add(picture)
        out.append(picture)
    for attachment in _data_list(post.get('attachments')):
        extract_attachment_media(attachment, seen, out)
    return tuple(out)


def _permalink(post: dict) -> str:
    for name in PERMALINK_FIELDS:
        value = post.get(name)
        if isinstance(value, str) and value:
            return value
    return ''


def _is_displayable(post) -> bool:
    if not isinstance(post, dict):
        return False
    if post.get('is_published') is False:
        return False
    return bool(_permalink(post))


def build_display_post(post: dict) -> DisplayPost:
    return DisplayPost(
        id=_text(post.get('id')),
        message=_text(post.get('message')),
        permalink_url=_permalink(post),
        created_time=_text(post.get('created_time')),
        is_published=post.get('is_published') is not False,
        media=collect_post_media(post),
    )


def normalize_posts(raw_posts, limit: int) -> List[DisplayPost]:
    accepted = [p for p in (raw_posts if isinstance(raw_posts, list) else []) if _is_displayable(p)]
    # Truncation happens before building, unlike the media feed.
    built = [build_display_post(p) for p in accepted[:max(limit, 0)]]
    return _by_recency(built, lambda p: p.created_time)
