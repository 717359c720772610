"""RequestPipeline – every outbound call of the client goes through here.

Responsibilities
----------------
1. Read the bearer token from :class:`CredentialStore` before *each* attempt.
2. Classify failures (auth rejection, transport failure, server/validation).
3. Retry transport failures with exponential backoff.
4. Resolve *every* call into exactly one :class:`Outcome`; no exception
   other than task cancellation escapes the public verbs.

SECURITY NOTE
-------------
Tokens are never logged.  Log records carry only method, path (without
query), a truncated correlation id and the attempt number.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Final, Mapping

import httpx

from portal_client.config import ClientConfig
from portal_client.core.errors import (
    MSG_DEFAULT,
    MSG_FORBIDDEN,
    MSG_NOT_FOUND,
    MSG_SERVER_ERROR,
    MSG_UNAUTHORIZED,
    MSG_VALIDATION_ERROR,
    ApiError,
    AuthError,
    NetworkError,
    NotFoundError,
    ServerError,
    UnknownError,
    ValidationError,
)
from portal_client.core.log_utils import get_request_logger
from portal_client.core.models import Outcome, RequestAttempt, RequestSpec
from portal_client.core.signals import UnauthorizedNotifier
from portal_client.core.store import CredentialStore
from portal_client.core.timer import Sleep
from portal_client.http.retry import RetryPolicy

_LOG = logging.getLogger("portal-client.http.pipeline")

CORRELATION_HEADER: Final[str] = "X-Correlation-ID"


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return response.json()
        except ValueError:
            _LOG.debug("Response declared JSON but could not be decoded")
    return response.text


def classify_response(response: httpx.Response) -> Any:
    """Return the payload of a 2xx response or raise the matching ApiError."""
    status = response.status_code
    body = _parse_body(response)
    if 200 <= status < 300:
        return body

    server_message: str | None = None
    server_code: str | None = None
    if isinstance(body, Mapping):
        if isinstance(body.get("message"), str) and body["message"]:
            server_message = body["message"]
        if body.get("code"):
            server_code = str(body["code"])
    code = server_code or f"HTTP_{status}"

    if status == 401:
        raise AuthError(MSG_UNAUTHORIZED, status=status, code=code, details=body)
    if status == 403:
        raise AuthError(MSG_FORBIDDEN, status=status, code=code, details=body)
    if status == 400:
        raise ValidationError(
            server_message or MSG_VALIDATION_ERROR, status=status, code=code, details=body
        )
    if status == 404:
        raise NotFoundError(MSG_NOT_FOUND, status=status, code=code, details=body)
    if status == 500:
        raise ServerError(MSG_SERVER_ERROR, status=status, code=code, details=body)
    if 500 < status < 600:
        raise ServerError(server_message or MSG_DEFAULT, status=status, code=code, details=body)
    raise UnknownError(server_message or MSG_DEFAULT, status=status, code=code, details=body)


class RequestPipeline:
    """Authenticated, retrying HTTP facade over :class:`httpx.AsyncClient`.

    Calls are independent coroutines; any number may be in flight at once.
    Retry delays go through the injected *sleep* so that a waiting call
    never blocks its siblings.
    """

    def __init__(
        self,
        store: CredentialStore,
        *,
        config: ClientConfig | None = None,
        notifier: UnauthorizedNotifier | None = None,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config or ClientConfig()
        self.store = store
        self.notifier = notifier
        self.retry_policy = retry_policy or RetryPolicy.from_config(self.config)
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            headers=dict(self.config.default_headers),
            verify=self.config.ssl_verify,
            follow_redirects=True,
            transport=transport,
        )

    # ------------------------------------------------------------------ #
    # lifecycle                                                          #
    # ------------------------------------------------------------------ #
    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RequestPipeline":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ #
    # public verbs                                                       #
    # ------------------------------------------------------------------ #
    async def get(self, path: str, *, params: Mapping[str, Any] | None = None, **kwargs: Any) -> Outcome:
        return await self.request("GET", path, params=params, **kwargs)

    async def post(self, path: str, data: Any = None, **kwargs: Any) -> Outcome:
        return await self.request("POST", path, json=data, **kwargs)

    async def put(self, path: str, data: Any = None, **kwargs: Any) -> Outcome:
        return await self.request("PUT", path, json=data, **kwargs)

    async def patch(self, path: str, data: Any = None, **kwargs: Any) -> Outcome:
        return await self.request("PATCH", path, json=data, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Outcome:
        return await self.request("DELETE", path, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Outcome:
        """Execute one logical call and resolve it into an :class:`Outcome`."""
        call = RequestSpec(
            method=method.upper(),
            path=path,
            json=json,
            params=params,
            headers=headers,
            timeout=timeout,
        )
        correlation_id = uuid.uuid4().hex
        log = get_request_logger(method=call.method, path=call.path, correlation_id=correlation_id)
        try:
            return await self._execute(call, correlation_id, log)
        except ApiError as exc:
            return Outcome.fail(exc)
        except Exception:  # noqa: BLE001 – nothing may escape the pipeline
            log.exception("Unexpected failure while executing request")
            return Outcome.fail(UnknownError(MSG_DEFAULT))

    # ------------------------------------------------------------------ #
    # internals                                                          #
    # ------------------------------------------------------------------ #
    async def _execute(self, call: RequestSpec, correlation_id: str, log: Any) -> Outcome:
        attempt = RequestAttempt()
        while True:
            attempt_log = log.bind(attempt=attempt.number)
            try:
                response = await self._send(call, correlation_id)
            except httpx.TransportError as exc:
                if not self.retry_policy.should_retry(attempt):
                    attempt_log.error(
                        "Transport failure, retries exhausted after %d attempt(s): %s",
                        attempt.number,
                        type(exc).__name__,
                    )
                    raise NetworkError() from exc
                attempt = attempt.next()
                delay = self.retry_policy.delay_for(attempt.retry_count)
                attempt_log.warning(
                    "Transport failure (%s); retry %d/%d in %.1fs",
                    type(exc).__name__,
                    attempt.retry_count,
                    self.retry_policy.max_retries,
                    delay,
                )
                await self._sleep(delay)
                continue
            except httpx.HTTPError as exc:
                attempt_log.error("Request failed without a usable response: %s", exc)
                raise UnknownError(MSG_DEFAULT) from exc

            try:
                data = classify_response(response)
            except AuthError as exc:
                attempt_log.warning("Auth rejection (HTTP %d); ending session", exc.status)
                self._handle_auth_rejection()
                raise
            except ApiError as exc:
                attempt_log.info("Request failed with HTTP %d (%s)", exc.status, exc.code)
                raise
            attempt_log.debug("Request succeeded with HTTP %d", response.status_code)
            return Outcome.ok(response.status_code, data)

    async def _send(self, call: RequestSpec, correlation_id: str) -> httpx.Response:
        headers: dict[str, str] = dict(call.headers or {})
        headers[CORRELATION_HEADER] = correlation_id
        token = self.store.get()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        kwargs: dict[str, Any] = {"headers": headers}
        if call.json is not None:
            kwargs["json"] = call.json
        if call.params:
            kwargs["params"] = {k: v for k, v in call.params.items() if v is not None}
        if call.timeout is not None:
            kwargs["timeout"] = call.timeout
        return await self._client.request(call.method, call.path, **kwargs)

    def _handle_auth_rejection(self) -> None:
        self.store.clear()
        if self.notifier is None:
            return
        try:
            self.notifier.notify_unauthorized()
        except Exception:  # noqa: BLE001 – the outcome must still be delivered
            _LOG.exception("Unauthorized callback raised")
