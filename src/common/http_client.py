"""Shared HTTP helpers used by the repository resolver.

Encapsulates common request/timeout error handling so callers avoid
duplicating try/except blocks. Transport failures surface as
ResolutionError instead of exiting the process, so the install pipeline
can abort cleanly.
"""
from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Optional

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from errors import ResolutionError

logger = logging.getLogger(__name__)

_session: Optional[requests.Session] = None


def _get_session() -> requests.Session:
    global _session  # pylint: disable=global-statement
    if _session is None:
        _session = requests.Session()
        _session.headers.update({"User-Agent": "rym"})
    return _session


def safe_get(url: str, *, context: str, **kwargs: Any) -> requests.Response:
    """Perform a GET request with retries and consistent error handling.

    Connection failures and timeouts are retried up to
    Constants.HTTP_RETRY_MAX times with exponential backoff; 5xx responses
    are retried as well. Any other status is returned to the caller.

    Raises:
        ResolutionError: when every attempt failed.
    """
    safe_target = safe_url(url)
    last_error = "no attempt made"
    for attempt in range(Constants.HTTP_RETRY_MAX):
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            context=context,
                            attempt=attempt + 1,
                        ),
                    )
                res = _get_session().get(url, timeout=Constants.REQUEST_TIMEOUT, **kwargs)
            except requests.Timeout:
                last_error = f"timed out after {Constants.REQUEST_TIMEOUT} seconds"
                res = None
            except requests.RequestException as exc:  # includes ConnectionError
                last_error = f"connection error: {exc}"
                res = None

        if res is not None and res.status_code < 500:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP response",
                    extra=extra_context(
                        event="http_response",
                        component="http_client",
                        action="GET",
                        outcome="success" if res.status_code == 200 else "handled_non_2xx",
                        status_code=res.status_code,
                        duration_ms=t.duration_ms(),
                        target=safe_target,
                        context=context,
                    ),
                )
            return res
        if res is not None:
            last_error = f"server error {res.status_code}"

        if attempt + 1 < Constants.HTTP_RETRY_MAX:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** attempt))

    logger.error("%s request to %s failed: %s", context, safe_target, last_error)
    raise ResolutionError(f"{context}: {safe_target} {last_error}")


def get_text(url: str, *, context: str) -> Optional[str]:
    """Return the body of url, or None when the server answers 404."""
    res = safe_get(url, context=context)
    if res.status_code == 404:
        return None
    if res.status_code != 200:
        raise ResolutionError(f"{context}: {safe_url(url)} returned HTTP {res.status_code}")
    return res.text


def download_to_path(url: str, dest: Path, *, context: str) -> bool:
    """Stream url into dest, returning False when the server answers 404.

    The body is written to a temporary sibling and renamed into place, so
    concurrent readers of dest never observe a partial file.
    """
    res = safe_get(url, context=context, stream=True)
    try:
        if res.status_code == 404:
            return False
        if res.status_code != 200:
            raise ResolutionError(f"{context}: {safe_url(url)} returned HTTP {res.status_code}")

        dest.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", dir=str(dest.parent))
        try:
            with os.fdopen(fd, "wb") as fh:
                for chunk in res.iter_content(chunk_size=1024 * 1024):
                    if chunk:
                        fh.write(chunk)
            os.replace(tmp_name, dest)
        except (OSError, requests.RequestException) as exc:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ResolutionError(f"{context}: failed to download {safe_url(url)}: {exc}") from exc
        return True
    finally:
        res.close()
