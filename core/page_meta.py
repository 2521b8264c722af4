"""Extract page metadata (title, description, viewport, protocol) from a response."""
import re
from typing import Dict, Iterator
from urllib.parse import urlparse

from models.site import PageMeta

TITLE_RE = re.compile(r'<title\b[^>]*>(.*?)</title\s*>', re.IGNORECASE | re.DOTALL)
# Quoted attribute values may contain '>'
META_TAG_RE = re.compile(r'<meta\b((?:"[^"]*"|\'[^\']*\'|[^\'">])*)>', re.IGNORECASE)
ATTRIBUTE_RE = re.compile(
    r'([a-zA-Z_:][-a-zA-Z0-9_:.]*)\s*=\s*(?:"([^"]*)"|\'([^\']*)\'|([^\s"\'>]+))'
)
HTTP_VERSION_RE = re.compile(r'\bHTTP/\d+(?:\.\d+)?', re.IGNORECASE)


def _iter_meta_attributes(body: str) -> Iterator[Dict[str, str]]:
    """Yield the attributes of each <meta> tag, names lowercased."""
    for tag in META_TAG_RE.finditer(body):
        attributes = {}
        for match in ATTRIBUTE_RE.finditer(tag.group(1)):
            name = match.group(1).lower()
            value = next((g for g in match.group(2, 3, 4) if g is not None), "")
            attributes.setdefault(name, value)
        yield attributes


def extract_title(body: str) -> str:
    match = TITLE_RE.search(body or "")
    if not match:
        return ""
    return match.group(1).strip()


def _first_meta_content(body: str, name: str) -> str:
    for attributes in _iter_meta_attributes(body or ""):
        if attributes.get("name", "").lower() == name:
            return attributes.get("content", "")
    return ""


def extract_description(body: str) -> str:
    return _first_meta_content(body, "description").strip()


def is_responsive(body: str) -> bool:
    for attributes in _iter_meta_attributes(body or ""):
        if attributes.get("name", "").lower() == "viewport":
            if "width=device-width" in attributes.get("content", "").replace(" ", "").lower():
                return True
    return False


def extract_http_version(headers: str) -> str:
    """HTTP version of the first status line, e.g. 'HTTP/2' or 'HTTP/1.1'."""
    for line in (headers or "").splitlines():
        if not line.strip():
            continue
        match = HTTP_VERSION_RE.search(line)
        return match.group(0).upper() if match else ""
    return ""


def is_ssl(url: str) -> bool:
    return urlparse(url or "").scheme.lower() == "https"


def extract_page_meta(url: str, headers: str, body: str) -> PageMeta:
    """
    Derive PageMeta from a fetched page.

    Malformed or missing markup yields empty strings rather than errors.
    Title and description are returned unescaped; the JSON writer escapes
    double quotes when the record is serialized.
    """
    return PageMeta(
        title=extract_title(body),
        description=extract_description(body),
        responsive=is_responsive(body),
        http_version=extract_http_version(headers),
        ssl_enabled=is_ssl(url),
    )
