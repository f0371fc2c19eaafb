"""
HTTP plumbing shared by the GBIF and Wikidata clients.

One pooled ``requests.Session`` serves every remote call. Its adapter retries
the statuses both services return when busy (429, 502-504) with exponential
backoff, honouring ``Retry-After`` on rate limits. The pool is sized for the
concurrent cell syncs so worker threads don't queue on connections.

``fetch_json`` is the one place transport failures and non-2xx statuses become
``RemoteFetchFailed``; datasource clients only check the shape of the body.

Usage::

    from biodiversity_nearby.services.http import fetch_json

    status, body = fetch_json("https://api.gbif.org/v1/occurrence/search", params={...})
"""

from __future__ import annotations

from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from biodiversity_nearby.errors import MalformedResponse, RemoteFetchFailed

#: Retry strategy for GBIF and Wikidata under load.
DEFAULT_RETRY = Retry(
    total=4,
    backoff_factor=2,  # 0s, 2s, 4s, 8s between retries
    status_forcelist=[429, 502, 503, 504],
    allowed_methods=["GET", "HEAD", "OPTIONS"],
    respect_retry_after_header=True,
    raise_on_status=False,  # fetch_json reports the final status
)

DEFAULT_TIMEOUT = 30  # seconds

#: Connections kept per host; matches the default ``max_workers``.
POOL_SIZE = 8

#: GBIF and the Wikidata query service both ask clients to identify themselves.
USER_AGENT = "biodiversity-nearby/0.1 (https://github.com/mihow/biodiversity-nearby)"


def create_session(
    retry: Retry | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    pool_size: int = POOL_SIZE,
    user_agent: str = USER_AGENT,
) -> requests.Session:
    """
    Build a pooled session for remote lookups.

    Args:
        retry: Retry strategy (defaults to ``DEFAULT_RETRY``). The position
            lookup passes ``Retry(total=0)`` so startup never waits on it.
        timeout: Timeout applied to requests that don't pass one.
        pool_size: Connections kept per host.
        user_agent: ``User-Agent`` header sent with every request.
    """
    adapter = HTTPAdapter(
        max_retries=retry or DEFAULT_RETRY,
        pool_connections=pool_size,
        pool_maxsize=pool_size,
    )
    s = requests.Session()
    for prefix in ("https://", "http://"):
        s.mount(prefix, adapter)
    s.headers["User-Agent"] = user_agent

    _send = s.send

    def _send_with_timeout(
        prepared: requests.PreparedRequest, **kwargs: object
    ) -> requests.Response:
        kwargs.setdefault("timeout", timeout)
        return _send(prepared, **kwargs)  # type: ignore[arg-type]

    s.send = _send_with_timeout  # type: ignore[method-assign]
    return s


#: Shared by the GBIF and Wikidata clients.
session: requests.Session = create_session()


def fetch_json(
    url: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> tuple[int, Any]:
    """
    GET ``url`` and decode the JSON body.

    Returns:
        ``(status, body)`` so callers can report the real status when the
        body has the wrong shape.

    Raises:
        RemoteFetchFailed: Transport error, or a non-2xx status after retries.
        MalformedResponse: The body is not JSON.
    """
    try:
        resp = session.get(url, params=params, headers=headers)
    except requests.RequestException as exc:
        raise RemoteFetchFailed(None, url, str(exc)) from exc

    if not resp.ok:
        raise RemoteFetchFailed(resp.status_code, url, resp.reason or "")

    try:
        return resp.status_code, resp.json()
    except ValueError as exc:
        raise MalformedResponse(resp.status_code, url, "invalid JSON") from exc
