"""
URL normalization and validation for incoming analysis requests.
"""

from urllib.parse import urlparse
from typing import Tuple


def normalize_url(url: str) -> Tuple[str, bool]:
    """
    Prepend https:// when the URL has no scheme.

    Returns:
        (normalized_url, was_modified)
    """
    url = url.strip()

    if not url.lower().startswith(("http://", "https://")):
        return f"https://{url}", True

    return url, False


def validate_url(url: str) -> Tuple[bool, str, str]:
    """
    Normalize and syntactically validate a user-supplied URL.

    Returns:
        (is_valid, normalized_url, error_message)
    """
    if not isinstance(url, str) or not url.strip():
        return False, "", "URL cannot be empty"

    normalized_url, _ = normalize_url(url)

    if any(ch.isspace() for ch in normalized_url):
        return False, normalized_url, "Invalid URL format: contains whitespace"

    try:
        parsed = urlparse(normalized_url)

        if parsed.scheme not in ["http", "https"]:
            return False, normalized_url, f"Invalid URL scheme: {parsed.scheme} (must be http or https)"

        host = parsed.hostname
        if not host:
            return False, normalized_url, "Invalid URL format: missing domain"

        if "." not in host and host != "localhost":
            return False, normalized_url, "Invalid URL format: domain has no top-level domain"

        # Port access raises ValueError for out-of-range values
        parsed.port

        return True, normalized_url, ""

    except ValueError as e:
        return False, normalized_url, f"URL parsing error: {str(e)}"


def canonical_url(url: str) -> str:
    """
    Cache identity of a validated URL.

    Lower-cases scheme and host, drops the fragment and a bare trailing slash.
    """
    parsed = urlparse(url)
    path = parsed.path if parsed.path not in ("", "/") else ""
    netloc = parsed.netloc.lower()
    canonical = f"{parsed.scheme.lower()}://{netloc}{path}"
    if parsed.query:
        canonical += f"?{parsed.query}"
    return canonical
