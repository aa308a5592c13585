from urllib.parse import urlparse

from timeline_rss.utils.text import is_xml_safe

MAX_HOSTNAME_LENGTH = 253
MAX_LABEL_LENGTH = 63
FORBIDDEN_HOST_CHARS = frozenset("/:@")
LABEL_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-")
SAFE_URL_SCHEMES = frozenset({"http", "https"})


class InvalidInstanceError(ValueError):
    pass


def _is_valid_label(label: str) -> bool:
    if not 0 < len(label) <= MAX_LABEL_LENGTH:
        return False
    if label.startswith("-") or label.endswith("-"):
        return False
    return all(char in LABEL_CHARS for char in label)


def validate_instance(hostname: str) -> str:
    """Turn a user-supplied instance hostname into an ``https://{host}/`` base URL.

    Only DNS-style hostnames are accepted, so a crafted path segment cannot smuggle
    a scheme, port, userinfo or path into the upstream request.
    """
    if not hostname:
        raise InvalidInstanceError("Instance hostname is required")
    if len(hostname) > MAX_HOSTNAME_LENGTH:
        raise InvalidInstanceError("Instance hostname is too long")
    if any(char in FORBIDDEN_HOST_CHARS for char in hostname):
        raise InvalidInstanceError("Instance must be a bare hostname without scheme, port or path")
    for label in hostname.split("."):
        if not _is_valid_label(label):
            raise InvalidInstanceError(f"Invalid instance hostname: {hostname[:MAX_LABEL_LENGTH]}")
    return f"https://{hostname}/"


def safe_url(url: str | None) -> str | None:
    """Return ``url`` when it is an absolute http(s) URL that can sit in XML, else None."""
    if not url or not isinstance(url, str):
        return None
    url = url.strip()
    if not is_xml_safe(url):
        return None
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme.lower() not in SAFE_URL_SCHEMES:
        return None
    if not parsed.netloc:
        return None
    return url
