"""Interactive login creating an app password for the exporter.

Uses the Nextcloud login flow v2: the user opens a URL in the browser and
confirms access, while the exporter polls the server until the app password
is handed out.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

STATUS_PATH = "/status.php"
LOGIN_PATH = "/index.php/login/v2"
MINIMUM_MAJOR_VERSION = 16


class LoginError(Exception):
    pass


@dataclass(frozen=True)
class Login:
    username: str
    password: str


@dataclass(frozen=True)
class PollInfo:
    token: str
    endpoint: str


class LoginClient:
    def __init__(
        self,
        server_url: str,
        user_agent: str,
        tls_skip_verify: bool = False,
        poll_interval: float = 1.0,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.server_url = server_url.rstrip("/")
        self.user_agent = user_agent
        self.poll_interval = poll_interval
        self._client_args = {
            "timeout": timeout,
            "verify": not tls_skip_verify,
            "follow_redirects": True,
            "transport": transport,
            "headers": {"User-Agent": user_agent},
        }

    async def start_interactive(self) -> Login:
        """Run the login flow and return the credentials created by the server."""
        async with httpx.AsyncClient(**self._client_args) as client:
            version = await self._major_version(client)
            if version < MINIMUM_MAJOR_VERSION:
                raise LoginError(
                    f"Nextcloud version too old for login: {version} Minimum: {MINIMUM_MAJOR_VERSION}"
                )

            login_url, poll = await self._login_info(client)
            logger.info("Please open this URL in a browser: %s", login_url)
            logger.info("Waiting for login ... (Ctrl-C to abort)")

            login = await self._poll(client, poll)

        logger.info("Username: %s", login.username)
        logger.info("Password: %s", login.password)
        return login

    async def _major_version(self, client: httpx.AsyncClient) -> int:
        try:
            resp = await client.get(self.server_url + STATUS_PATH)
        except httpx.RequestError as exc:
            raise LoginError(f"error connecting: {exc!r}") from exc
        if resp.status_code != httpx.codes.OK:
            raise LoginError(f"non-ok status: {resp.status_code}")

        try:
            version = str(resp.json().get("version", ""))
        except (ValueError, AttributeError) as exc:
            raise LoginError(f"error decoding status: {exc}") from exc

        major = version.split(".", 1)[0]
        try:
            return int(major)
        except ValueError:
            raise LoginError(f"can not parse {version!r} as version") from None

    async def _login_info(self, client: httpx.AsyncClient) -> tuple[str, PollInfo]:
        try:
            resp = await client.post(self.server_url + LOGIN_PATH)
        except httpx.RequestError as exc:
            raise LoginError(f"error connecting: {exc!r}") from exc
        if resp.status_code != httpx.codes.OK:
            raise LoginError(f"non-ok status: {resp.status_code}")

        try:
            data = resp.json()
            return data["login"], PollInfo(token=data["poll"]["token"], endpoint=data["poll"]["endpoint"])
        except (ValueError, KeyError, TypeError) as exc:
            raise LoginError(f"error decoding login info: {exc!r}") from exc

    async def _poll(self, client: httpx.AsyncClient, poll: PollInfo) -> Login:
        logger.debug("poll endpoint: %s", poll.endpoint)
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                resp = await client.post(poll.endpoint, data={"token": poll.token})
            except httpx.RequestError as exc:
                logger.debug("poll failed: %r", exc)
                continue

            if resp.status_code != httpx.codes.OK:
                logger.debug("poll status: %d", resp.status_code)
                continue

            try:
                data = resp.json()
                return Login(username=data["loginName"], password=data["appPassword"])
            except (ValueError, KeyError, TypeError) as exc:
                raise LoginError(f"error decoding password info: {exc!r}") from exc
