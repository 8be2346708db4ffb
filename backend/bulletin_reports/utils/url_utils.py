"""URL helpers for resolving stored image references."""

from urllib.parse import urlparse


def is_absolute_url(ref: str) -> bool:
    """True for http(s) URLs and scheme-relative (//host/...) references."""
    ref = ref.strip()
    if ref.startswith("//"):
        return True
    return urlparse(ref).scheme in ("http", "https")


def resolve_image_url(ref: str, base_url: str) -> str:
    """Turn a stored image reference into a fetchable URL.

    Absolute references are used as-is (scheme-relative ones get https:).
    Relative paths such as 'uploads/a.jpg' or '/uploads/a.jpg' are joined
    onto *base_url*.
    """
    ref = ref.strip()
    if not ref:
        return ref
    if ref.startswith("//"):
        return "https:" + ref
    if is_absolute_url(ref):
        return ref
    return f"{base_url.rstrip('/')}/{ref.lstrip('/')}"
