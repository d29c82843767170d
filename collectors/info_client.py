"""Client for the serverinfo endpoint of a Nextcloud instance."""

from __future__ import annotations

import httpx

from serverinfo import ServerInfo, parse
from serverinfo.errors import (
    AuthError,
    MaintenanceModeError,
    RateLimitedError,
    ServerConnectionError,
    ServiceUnavailableError,
    UnexpectedStatusError,
)

from .base import USER_AGENT

TOKEN_HEADER = "NC-Token"
MAINTENANCE_HEADER = "X-Nextcloud-Maintenance-Mode"


class InfoClient:
    """Fetches the status document with fixed URL, credentials and timeout.

    Every call opens its own HTTP client and closes it before returning, so an
    instance holds no connection state and can be shared between concurrent
    scrapes.
    """

    def __init__(
        self,
        info_url: str,
        username: str = "",
        password: str = "",
        auth_token: str = "",
        timeout: float = 5.0,
        user_agent: str = USER_AGENT,
        tls_skip_verify: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.info_url = info_url
        self.username = username
        self.password = password
        self.auth_token = auth_token
        self.timeout = timeout
        self.user_agent = user_agent
        self.tls_skip_verify = tls_skip_verify
        self._transport = transport

    def _request_args(self) -> dict:
        headers = {"User-Agent": self.user_agent}
        if self.auth_token:
            headers[TOKEN_HEADER] = self.auth_token
            return {"headers": headers}
        return {"headers": headers, "auth": (self.username, self.password)}

    async def fetch(self) -> bytes:
        """Return the raw body of the info endpoint.

        Raises a :class:`~serverinfo.errors.ScrapeError` subclass for every
        outcome other than HTTP 200.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                verify=not self.tls_skip_verify,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.get(self.info_url, **self._request_args())
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise ServerConnectionError(f"error connecting: {exc!r}") from exc

        if resp.status_code == httpx.codes.OK:
            return resp.content
        if resp.status_code == httpx.codes.UNAUTHORIZED:
            raise AuthError()
        if resp.status_code == httpx.codes.TOO_MANY_REQUESTS:
            raise RateLimitedError()
        if resp.status_code == httpx.codes.SERVICE_UNAVAILABLE:
            if resp.headers.get(MAINTENANCE_HEADER):
                raise MaintenanceModeError()
            raise ServiceUnavailableError()
        raise UnexpectedStatusError(resp.status_code)

    async def fetch_info(self) -> ServerInfo:
        return parse(await self.fetch())
