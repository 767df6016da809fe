import json
import logging
import re
from typing import Iterable, List, Tuple
from urllib.parse import unquote, urlsplit

logger = logging.getLogger("api.gallery")

GALLERY_PREFIX = 'gallery/'
IMAGE_EXTENSIONS = frozenset({'jpg', 'jpeg', 'png', 'gif', 'webp', 'avif'})
ENTRY_PATH_KEYS = ('path', 'key', 'name')

_LEADING_DIGITS = re.compile(r'^([0-9]+)')
_CHUNKS = re.compile(r'([0-9]+)')


def _entries_from_value(value) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, dict):
        return [k for k in value.keys() if isinstance(k, str)]
    if isinstance(value, list):
        out = []
        for item in value:
            if isinstance(item, str):
                out.append(item)
            elif isinstance(item, dict):
                for key in ENTRY_PATH_KEYS:
                    v = item.get(key)
                    if isinstance(v, str):
                        out.append(v)
        return out
    return []


def extract_manifest_entries(source) -> List[str]:
    """
    Flatten a manifest of uncontrolled shape into candidate path strings.

    `source` may be decoded JSON (list or dict) or raw text. Text is parsed as
    JSON; text that is not JSON is taken as a single entry, unless it looks like
    a JSON array/object, in which case it is logged and contributes nothing.
    """
    if source is None:
        return []
    if not isinstance(source, (str, bytes)):
        return _entries_from_value(source)
    text = source.decode('utf-8', errors='replace') if isinstance(source, bytes) else source
    text = text.strip()
    if not text:
        return []
    try:
        decoded = json.loads(text)
    except ValueError as e:
        if text[0] in '[{':
            logger.warning("[Gallery] manifest parse error: %s", e)
            return []
        return [text]
    return _entries_from_value(decoded)


def normalize_manifest_entry(value: str) -> str:
    s = (value or '').strip()
    if re.match(r'(?i)^https?://', s):
        try:
            s = urlsplit(s).path
        except ValueError:
            pass
    if s.startswith('./'):
        s = s[2:]
    s = s.lstrip('/')
    s = re.split(r'[?#]', s, maxsplit=1)[0]
    try:
        s = unquote(s, errors='strict')
    except UnicodeDecodeError:
        pass
    return s


def _filename(path: str) -> str:
    return path.rsplit('/', 1)[-1]


def _extension(path: str) -> str:
    name = _filename(path)
    if '.' not in name:
        return ''
    return name.rsplit('.', 1)[-1].lower()


def _natural_key(path: str) -> Tuple:
    parts = []
    # split() with a capturing group puts the digit runs at odd indexes
    for i, chunk in enumerate(_CHUNKS.split(path.casefold())):
        if not chunk:
            continue
        parts.append((0, int(chunk), chunk) if i % 2 else (1, 0, chunk))
    return tuple(parts)


def gallery_sort_key(path: str):
    m = _LEADING_DIGITS.match(_filename(path))
    number = int(m.group(1)) if m else float('inf')
    return (number, _natural_key(path), path)


def collect_gallery_files(entries: Iterable[str], prefix: str = GALLERY_PREFIX,
                          extensions=IMAGE_EXTENSIONS) -> List[str]:
    lowered = prefix.lower()
    found = set()
    for entry in entries:
        if not entry or not entry.lower().startswith(lowered):
            continue
        rest = entry[len(prefix):]
        if not rest or rest.endswith('/'):
            continue
        if _extension(rest) not in extensions:
            continue
        found.add(prefix + rest)
    return sorted(found, key=gallery_sort_key)


def resolve_gallery(source, prefix: str = GALLERY_PREFIX) -> List[str]:
    entries = [normalize_manifest_entry(e) for e in extract_manifest_entries(source)]
    return collect_gallery_files([e for e in entries if e], prefix=prefix)
