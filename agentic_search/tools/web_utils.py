from __future__ import annotations

import re
from urllib.parse import quote, urlparse

# Characters encodeURIComponent leaves alone on top of quote()'s defaults.
_URI_COMPONENT_SAFE = "!*'()"


def is_valid_url(url: str) -> bool:
    """Basic URL validation."""
    try:
        result = urlparse(url)
        return all([result.scheme in ("http", "https"), result.netloc])
    except ValueError:
        return False


def display_title(url: str) -> str:
    """Hostname without a leading ``www.``, used until a page title is known."""
    host = urlparse(url).hostname or url
    if host.startswith("www."):
        host = host[4:]
    return host


def encode_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def clean_content(text: str, max_length: int = 8000) -> str:
    """Collapse whitespace and trim to max length."""
    text = re.sub(r"\s+", " ", text).strip()
    if len(text) > max_length:
        text = text[:max_length] + "..."
    return text
