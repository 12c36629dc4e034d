"""Validation and normalization of the API root URL.

Endpoint paths such as ``auth/login/`` are resolved relative to the API root,
so the root must be a plain ``scheme://host[:port]/path/`` base: no
credentials, no query string, no fragment, and a trailing slash.
"""

import ipaddress
import re
from typing import Optional

import httpx

from .exceptions import URLValidationError

ALLOWED_SCHEMES = ("http", "https")


def _is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def _validate_host(host: str, url: str) -> None:
    if not host:
        raise URLValidationError(f"API root has no host: {url}")
    if host == "localhost" or _is_ip_address(host):
        return

    labels = host.split(".")
    if len(labels) < 2 or not all(labels):
        raise URLValidationError(
            f"Invalid host '{host}'", "expected a dotted domain name, localhost or an IP"
        )


def _normalize_path(path: str) -> str:
    collapsed = re.sub(r"/{2,}", "/", path or "/")
    return collapsed.rstrip("/") + "/"


def validate_and_normalize_api_root(api_root_url: Optional[str]) -> str:
    """Validate an API root URL and return its canonical form.

    A missing scheme defaults to https. Default ports are dropped, repeated
    slashes in the path are collapsed and the path always ends with ``/``.

    Args:
        api_root_url: The API root URL to validate

    Returns:
        str: The normalized API root

    Raises:
        URLValidationError: If the URL cannot serve as an API root
    """
    candidate = (api_root_url or "").strip()
    if not candidate:
        raise URLValidationError("API root URL cannot be empty")

    if "://" not in candidate:
        candidate = f"https://{candidate}"

    try:
        url = httpx.URL(candidate)
    except httpx.InvalidURL as e:
        raise URLValidationError(f"Invalid URL format: {candidate}", str(e))

    if url.scheme not in ALLOWED_SCHEMES:
        raise URLValidationError(
            f"Unsupported protocol '{url.scheme}'. Only HTTP and HTTPS are supported"
        )
    if url.userinfo:
        raise URLValidationError("API root must not embed credentials")
    if url.query or url.fragment:
        raise URLValidationError(
            f"API root must not carry a query string or fragment: {candidate}"
        )

    _validate_host(url.host, candidate)

    host = f"[{url.host}]" if ":" in url.host else url.host
    netloc = host if url.port is None else f"{host}:{url.port}"
    return f"{url.scheme}://{netloc}{_normalize_path(url.path)}"
