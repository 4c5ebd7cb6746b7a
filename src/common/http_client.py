"""Shared HTTP helpers used by the repository client.

Encapsulates request/timeout/retry handling so callers deal with status codes
and ``TransferError`` only. Retries live here and nowhere else: the resolver
never re-issues a failed artifact request.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Optional, Tuple

import requests

from constants import Constants
from common.exceptions import TransferError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

_DEFAULT_HEADERS = {"User-Agent": Constants.USER_AGENT, "Accept": "*/*"}


def robust_get(
    url: str,
    *,
    context: str,
    auth: Optional[Tuple[str, str]] = None,
    stream: bool = False,
    **kwargs: Any,
) -> requests.Response:
    """Perform a GET request with timeout and bounded retries.

    Timeouts, connection errors and 5xx responses are retried with exponential
    backoff. Any other response is returned to the caller as-is.

    Raises:
        TransferError: when every attempt failed.
    """
    safe_target = safe_url(url)
    last_problem = "no attempt made"

    for attempt in range(Constants.HTTP_RETRY_MAX):
        if attempt:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 1)))
        with Timer() as t:
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
            try:
                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=_DEFAULT_HEADERS,
                    auth=auth,
                    stream=stream,
                    **kwargs,
                )
            except requests.Timeout:
                last_problem = f"timed out after {Constants.REQUEST_TIMEOUT} seconds"
                continue
            except requests.RequestException as exc:  # includes ConnectionError
                last_problem = str(exc)
                continue

        if response.status_code >= 500:
            last_problem = f"HTTP {response.status_code}"
            response.close()
            continue

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    outcome="success" if response.status_code == 200 else "handled_non_2xx",
                    status_code=response.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context,
                ),
            )
        return response

    logger.warning(
        "%s request to %s failed after %s attempts: %s",
        context,
        safe_target,
        Constants.HTTP_RETRY_MAX,
        last_problem,
    )
    raise TransferError(
        f"GET {safe_target} failed after {Constants.HTTP_RETRY_MAX} attempts: {last_problem}",
        subject=safe_target,
    )


def get_text(
    url: str,
    *,
    context: str,
    auth: Optional[Tuple[str, str]] = None,
) -> Tuple[int, str]:
    """GET a small text document; returns ``(status_code, text)``."""
    response = robust_get(url, context=context, auth=auth)
    try:
        return response.status_code, response.text
    finally:
        response.close()


def download_to_file(
    url: str,
    destination: str,
    *,
    context: str,
    auth: Optional[Tuple[str, str]] = None,
) -> int:
    """Stream ``url`` into ``destination``.

    The payload is written to a sibling temporary file and moved into place
    only once complete, so a partially transferred file never looks cached.
    Nothing is written for non-200 responses.

    Returns:
        The HTTP status code of the final response.
    """
    response = robust_get(url, context=context, auth=auth, stream=True)
    try:
        if response.status_code != 200:
            return response.status_code

        os.makedirs(os.path.dirname(destination) or ".", exist_ok=True)
        partial = f"{destination}.part"
        try:
            with open(partial, "wb") as handle:
                for chunk in response.iter_content(chunk_size=Constants.DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        handle.write(chunk)
            os.replace(partial, destination)
        except requests.RequestException as exc:
            _discard(partial)
            raise TransferError(
                f"Transfer of {safe_url(url)} interrupted: {exc}", subject=safe_url(url)
            ) from exc
        except OSError:
            _discard(partial)
            raise
        return response.status_code
    finally:
        response.close()


def _discard(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
