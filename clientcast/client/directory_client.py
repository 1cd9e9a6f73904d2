"""HTTP client for the bot backend client directory.

Endpoints (relative to ``base_url``):
    POST /auth              -> {"isAuth": bool, "accessToken": str}
    GET  /clients?offset=N  -> {"count": int, "singleType": bool, "rows": [...]}
    GET  /clients/info?id=N -> {"id": int, "telegramId": str, "userName": str}
    POST /clients/message   -> status only

Every call is attempted exactly once. Retrying is left to the caller.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterable, List, Optional

import requests
from requests.adapters import HTTPAdapter

from ..types import ClientDetail, ClientSummary, Credentials, FilterResult, Session
from .errors import AuthenticationError, DecodeError, ProtocolError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080/api"


def filter_reachable(clients: Iterable[ClientSummary]) -> FilterResult:
    """
    Keep clients that are not deleted and are reachable on Telegram.

    A status of -1 is always dropped, whatever the channel flags say.
    """
    result = FilterResult()
    for client in clients:
        if not client.is_deleted and client.is_telegram:
            result.retained.append(client)
        else:
            result.dropped += 1

    logger.info(
        "Filtered clients: kept %d of %d (dropped %d)",
        len(result.retained),
        result.total,
        result.dropped,
    )
    return result


class DirectoryClient:
    """
    Client for the directory/messaging API.

    The session token is never stored on the client. ``authenticate`` returns
    a frozen ``Session`` that callers pass into each subsequent call.

    Usage:
        client = DirectoryClient()
        session = client.authenticate(Credentials("login", "secret"))
        clients = client.filter_clients(client.list_clients(session)).retained
        detail = client.get_client_detail(session, clients[0].id)
    """

    AUTH_PATH = "/auth"
    CLIENTS_PATH = "/clients"
    CLIENT_INFO_PATH = "/clients/info"
    MESSAGE_PATH = "/clients/message"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        pool_size: int = 10,
        user_agent: Optional[str] = None,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("CLIENTCAST_BASE_URL", DEFAULT_BASE_URL)).rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent or "clientcast/0.1"
        if http is None:
            http = requests.Session()
            # One pooled connection per worker thread
            adapter = HTTPAdapter(pool_connections=1, pool_maxsize=max(1, pool_size))
            http.mount("https://", adapter)
            http.mount("http://", adapter)
        self.http = http
        self.http.headers.update({"User-Agent": self.user_agent})

    def authenticate(self, credentials: Credentials) -> Session:
        """
        Log in and return the session holding the bearer token.

        The ``isAuth`` flag is not checked here; callers must verify that
        ``session.is_valid`` before going on.
        """
        logger.info("Requesting access token for %s", credentials.login)
        payload = {
            "lang": credentials.lang,
            "login": credentials.login,
            "password": credentials.password,
        }
        response = self._request("POST", self.AUTH_PATH, json=payload)
        logger.info("Auth response status: %d", response.status_code)
        data = self._decode(response)
        if not isinstance(data, dict):
            raise DecodeError(f"Unexpected auth response: {type(data).__name__}")

        return Session(
            token=str(data.get("accessToken") or ""),
            authenticated=bool(data.get("isAuth", False)),
        )

    def list_clients(self, session: Session, offset: int = 0) -> List[ClientSummary]:
        """
        Fetch one page of client summaries.

        The page size is fixed server-side and only the page at ``offset`` is
        fetched; no further pages are requested.
        """
        logger.info("Fetching client list (offset=%d)", offset)
        response = self._request(
            "GET",
            self.CLIENTS_PATH,
            session=session,
            params={"offset": offset},
        )
        self._check_status(response)
        data = self._decode(response)
        try:
            rows = data.get("rows") or []
            clients = [ClientSummary.from_dict(row) for row in rows]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"Malformed client list: {e}") from e

        logger.info(
            "Received %d clients (server count=%s)", len(clients), data.get("count")
        )
        return clients

    def filter_clients(self, clients: Iterable[ClientSummary]) -> FilterResult:
        return filter_reachable(clients)

    def get_client_detail(self, session: Session, client_id: int) -> ClientDetail:
        response = self._request(
            "GET",
            self.CLIENT_INFO_PATH,
            session=session,
            params={"id": client_id},
        )
        self._check_status(response)
        data = self._decode(response)
        try:
            return ClientDetail.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"Malformed detail for client {client_id}: {e}") from e

    def send_message(
        self,
        session: Session,
        recipient: str,
        text: str,
        bot_id: str,
    ) -> None:
        """Post ``text`` to ``recipient``. Anything but HTTP 200 is an error."""
        logger.debug("Sending message to %s", recipient)
        payload = {
            "telegramId": recipient,
            "botId": bot_id,
            "messageText": text,
        }
        response = self._request(
            "POST", self.MESSAGE_PATH, session=session, json=payload
        )
        logger.debug(
            "Message to %s: status %d, body %s",
            recipient,
            response.status_code,
            response.text[:200],
        )
        if response.status_code != 200:
            raise ProtocolError(response.status_code, response.text, url=response.url)

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "DirectoryClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        session: Optional[Session] = None,
        **kwargs: Any,
    ) -> requests.Response:
        headers: Dict[str, str] = {}
        if session is not None:
            if not session.is_valid:
                raise AuthenticationError(
                    f"Refusing {method} {path}: session has no access token"
                )
            headers["Authorization"] = session.authorization

        url = f"{self.base_url}{path}"
        try:
            return self.http.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _check_status(response: requests.Response) -> None:
        if not 200 <= response.status_code < 300:
            raise ProtocolError(response.status_code, response.text, url=response.url)

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(
                f"Could not decode response from {response.url}: {response.text[:200]}"
            ) from e
