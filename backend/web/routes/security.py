"""
Shared web security helpers for the RPC router and the form handlers.

CSRF defence is a same-origin check on Origin (or Referer as fallback). In
strict mode one of the two headers must be present; otherwise requests
without either header are accepted so non-browser clients keep working.
"""
from __future__ import annotations

import os
from typing import Optional, Tuple
from urllib.parse import urlparse

from fastapi import Request

Origin = Tuple[str, str, int]


def _default_port(scheme: str) -> int:
    return 443 if scheme == "https" else 80


def _parse_origin(url: str) -> Origin:
    p = urlparse(url)
    if not p.scheme or not p.hostname:
        raise ValueError("invalid_origin")
    scheme = p.scheme.lower()
    port = p.port if p.port is not None else _default_port(scheme)
    return scheme, p.hostname.lower(), int(port)


def _first(value: str) -> str:
    return value.split(",")[0].strip()


def _server_origin(request: Request) -> Origin:
    """Origin the server is reachable at; honours X-Forwarded-* only when LMS_TRUST_PROXY=true."""
    trust_proxy = (os.getenv("LMS_TRUST_PROXY", "false") or "").lower() == "true"
    if not trust_proxy:
        scheme = (request.url.scheme or "http").lower()
        host = (request.url.hostname or "").lower()
        port = int(request.url.port) if request.url.port else _default_port(scheme)
        return scheme, host, port

    scheme = (_first(request.headers.get("x-forwarded-proto") or "") or request.url.scheme or "http").lower()
    host_raw = _first(request.headers.get("x-forwarded-host") or request.headers.get("host") or "")
    if ":" in host_raw:
        host, port_str = host_raw.rsplit(":", 1)
        port = int(port_str) if port_str.isdigit() else _default_port(scheme)
    else:
        host = host_raw or (request.url.hostname or "")
        port = int(request.url.port) if request.url.port else _default_port(scheme)
    fwd_port = _first(request.headers.get("x-forwarded-port") or "")
    if fwd_port:
        port = int(fwd_port) if fwd_port.isdigit() else _default_port(scheme)
    return scheme, host.lower(), port


def _is_same_origin(request: Request) -> bool:
    """Verify same-origin using Origin or Referer headers.

    Behavior:
    - If Origin is present, require exact scheme/host/port match with server.
    - Else if Referer is present, validate its origin similarly.
    - Else (no headers): allow to not break non-browser clients.
    """
    claimed = request.headers.get("origin") or request.headers.get("referer")
    if not claimed:
        return True
    try:
        return _parse_origin(claimed) == _server_origin(request)
    except ValueError:
        return False


def csrf_violation(request: Request, *, strict: bool) -> Optional[str]:
    """Return ``"csrf_violation"`` when a write must be refused, else None."""
    if strict and not (request.headers.get("origin") or request.headers.get("referer")):
        return "csrf_violation"
    if not _is_same_origin(request):
        return "csrf_violation"
    return None
