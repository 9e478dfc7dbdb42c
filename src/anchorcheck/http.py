"""Request/response capture used by checks."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic_settings import BaseSettings, SettingsConfigDict

from anchorcheck.failures import (
    CONNECTION_ERROR,
    GENERIC_FAILURES,
    INVALID_JSON,
    UNEXPECTED_CONTENT_TYPE,
    UNEXPECTED_STATUS_CODE,
    make_failure,
)
from anchorcheck.models.result import NetworkCall, Result
from anchorcheck.tracing import trace_step
from anchorcheck.version import __version__


logger = logging.getLogger(__name__)


class HttpSettings(BaseSettings):
    """Configuration for the client each suite run uses.

    Attributes
    ----------
    connect_timeout, read_timeout, write_timeout, pool_timeout
        httpx timeouts in seconds.
    follow_redirects
        Whether redirects are followed transparently.
    user_agent
        Value of the ``User-Agent`` header.
    """

    connect_timeout: float = 5.0
    read_timeout: float = 30.0
    write_timeout: float = 30.0
    pool_timeout: float = 5.0
    follow_redirects: bool = True
    user_agent: str = f"anchorcheck/{__version__}"

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="ANCHORCHECK_HTTP_",
    )


def build_client(settings: HttpSettings | None = None) -> httpx.AsyncClient:
    """Create the `httpx.AsyncClient` for one suite run."""
    s = settings or HttpSettings()
    return httpx.AsyncClient(
        headers={"User-Agent": s.user_agent},
        follow_redirects=s.follow_redirects,
        timeout=httpx.Timeout(
            connect=s.connect_timeout,
            read=s.read_timeout,
            write=s.write_timeout,
            pool=s.pool_timeout,
        ),
    )


async def make_request(
    client: httpx.AsyncClient,
    call: NetworkCall,
    expected_status: int,
    result: Result,
    content_type: str | None = None,
) -> Any:
    """Send ``call.request`` and decode the response.

    The call is attached to ``result.network_calls`` whether or not it
    succeeds. On a transport error, a status other than ``expected_status``, a
    content type not matching ``content_type`` or an undecodable body, a
    generic failure is stored on ``result`` and None is returned.

    Parameters
    ----------
    client
        Client of the current suite run.
    call
        Holds the request to send; receives the response.
    expected_status
        Status code the server must answer with.
    result
        Result of the running check.
    content_type
        Expected response content type. Bodies are decoded as JSON when it
        contains ``json`` and returned as text otherwise.

    Returns
    -------
    Any
        The decoded body, or None on failure.
    """
    if call not in result.network_calls:
        result.network_calls.append(call)

    request = call.request
    args = {"method": request.method, "url": str(request.url)}

    with trace_step("http.request", {"http.method": request.method, "http.url": str(request.url)}) as span:
        try:
            call.response = await client.send(request)
        except httpx.HTTPError as exc:
            logger.debug("Request %s %s failed: %s", request.method, request.url, exc)
            result.failure = make_failure(
                CONNECTION_ERROR,
                GENERIC_FAILURES[CONNECTION_ERROR],
                {**args, "error": f"{exc.__class__.__name__}: {exc}"},
            )
            return None
        span.set_attribute("http.status_code", call.response.status_code)

    response = call.response
    if response.status_code != expected_status:
        result.failure = make_failure(
            UNEXPECTED_STATUS_CODE,
            GENERIC_FAILURES[UNEXPECTED_STATUS_CODE],
            {**args, "expected": expected_status, "actual": response.status_code},
            expected=expected_status,
            actual=response.status_code,
        )
        return None

    received = response.headers.get("content-type", "")
    if content_type is not None and content_type not in received:
        result.failure = make_failure(
            UNEXPECTED_CONTENT_TYPE,
            GENERIC_FAILURES[UNEXPECTED_CONTENT_TYPE],
            {**args, "expected": content_type, "actual": received},
            expected=content_type,
            actual=received,
        )
        return None

    if content_type is not None and "json" in content_type:
        try:
            return response.json()
        except ValueError as exc:
            result.failure = make_failure(INVALID_JSON, GENERIC_FAILURES[INVALID_JSON], {**args, "error": exc})
            return None
    return response.text
