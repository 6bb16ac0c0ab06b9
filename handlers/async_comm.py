"""Asynchronous HTTP utilities for the translation provider boundary.

This module wraps an aiohttp session with timeout handling, content-type based decoding and
a small exception hierarchy, so that provider clients only ever see ``AsyncCommError`` (or its
timeout subclass) instead of the many aiohttp/OS level failures.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Final, Literal, Self

import aiohttp
from aiohttp.client import ClientSession

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from aiohttp.client import ClientResponse


__all__: list[str] = [
    "AsyncCommError",
    "AsyncCommInvalidContentTypeError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTPMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

CONNECT_TIMEOUT: Final[float] = 1.0
DEFAULT_TOTAL_TIMEOUT: Final[float] = 5.0


class AsyncHttp:
    """Asynchronous HTTP client shared by every provider client.

    The session is created lazily inside the running event loop and can be re-created after
    ``close()``. Response bodies are decoded by the handler registered for their content type.
    """

    def __init__(self) -> None:
        """Register the default content handlers.

        The default handlers are:
            - "text/plain": Decodes bytes to a UTF-8 string.
            - "text/html": Decodes bytes to a UTF-8 string.
            - "application/json": Parses bytes as JSON.
        """
        logger.info("%s initializing", self.__class__.__name__)
        self.__session: ClientSession | None = None
        self.content_handlers: dict[str, Callable[[bytes], Any]] = {}

        self.add_handler("text/plain", lambda x: x.decode("utf-8"))
        self.add_handler("text/html", lambda x: x.decode("utf-8"))
        self.add_handler("application/json", lambda x: json.loads(x.decode("utf-8")))

    async def __aenter__(self) -> Self:
        self.initialize_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        await self.close()

    def initialize_session(self) -> None:
        """Create the aiohttp session if it does not exist or has been closed."""
        if self.__session is None or self.__session.closed:
            self.__session = ClientSession()
            logger.debug("%s session initialized", self.__class__.__name__)

    @property
    def session(self) -> ClientSession:
        """Return the current session, creating it on first use."""
        self.initialize_session()
        if self.__session is None:
            msg = "Session could not be initialized"
            raise RuntimeError(msg)
        return self.__session

    @property
    def is_open(self) -> bool:
        return self.__session is not None and not self.__session.closed

    async def close(self) -> None:
        """Close the aiohttp session if it is open."""
        if self.__session and not self.__session.closed:
            await self.__session.close()
        self.__session = None
        logger.info("%s session closed", self.__class__.__name__)

    async def get(
        self,
        *,
        url: str,
        params: dict[str, str] | None = None,
        total_timeout: float = DEFAULT_TOTAL_TIMEOUT,
    ) -> Any:
        """Perform an asynchronous HTTP GET request.

        Args:
            url (str): Request URL.
            params (dict[str, str] | None): Optional query parameters.
            total_timeout (float): Total timeout in seconds (0 or less disables it).

        Returns:
            Any: The decoded response body.

        Raises:
            AsyncCommError: On connection failures or non-success responses.
            AsyncCommTimeoutError: If the server did not answer in time.
        """
        return await self._request("GET", url=url, total_timeout=total_timeout, params=params)

    async def post(
        self,
        *,
        url: str,
        data: Any | None = None,
        form: dict[str, str] | None = None,
        total_timeout: float = DEFAULT_TOTAL_TIMEOUT,
    ) -> Any:
        """Perform an asynchronous HTTP POST request.

        Exactly one body kind is sent: ``form`` as ``application/x-www-form-urlencoded``,
        otherwise ``data`` as JSON.

        Args:
            url (str): Request URL.
            data (Any | None): JSON-serializable request body.
            form (dict[str, str] | None): Form fields for an urlencoded body.
            total_timeout (float): Total timeout in seconds (0 or less disables it).

        Returns:
            Any: The decoded response body.

        Raises:
            AsyncCommError: On connection failures or non-success responses.
            AsyncCommTimeoutError: If the server did not answer in time.
        """
        if form is not None:
            return await self._request("POST", url=url, total_timeout=total_timeout, data=form)
        return await self._request("POST", url=url, total_timeout=total_timeout, json=data)

    async def decode_response(self, resp: ClientResponse) -> Any:
        """Decode a response body with the handler registered for its content type.

        Raises:
            AsyncCommInvalidContentTypeError: If no handler is registered for the content type.
            AsyncCommError: If the body does not decode as its content type claims.
        """
        content_type: str = resp.headers.get("Content-Type", "").split(";")[0].strip()
        raw: bytes = await resp.read()
        if not raw:
            logger.debug("Received empty response")
            return None

        handler: Callable[[bytes], Any] | None = self.content_handlers.get(content_type)
        if handler:
            try:
                return handler(raw)
            except ValueError as err:
                # Covers JSONDecodeError and UnicodeDecodeError.
                msg = f"Malformed '{content_type}' response body"
                raise AsyncCommError(msg) from err

        msg: str = f"Unknown Content-Type '{content_type}'"
        raise AsyncCommInvalidContentTypeError(msg)

    def add_handler(self, content_type: str, handler: Callable[[bytes], Any]) -> None:
        """Register a decoder for a content type, replacing any existing one."""
        if self.content_handlers.get(content_type):
            logger.warning("Handler for content type '%s' already exists, replacing it", content_type)
        self.content_handlers[content_type] = handler

    @staticmethod
    def _build_timeout(total_timeout: float) -> aiohttp.ClientTimeout:
        if total_timeout <= 0:
            return aiohttp.ClientTimeout(total=None)
        if total_timeout < CONNECT_TIMEOUT:
            # A connect timeout longer than the total would never apply.
            return aiohttp.ClientTimeout(total=total_timeout)
        return aiohttp.ClientTimeout(connect=CONNECT_TIMEOUT, total=total_timeout)

    async def _request(
        self,
        method: HTTPMethod,
        *,
        url: str,
        total_timeout: float,
        **kwargs: Any,
    ) -> Any:
        """Perform a request and translate transport failures into ``AsyncCommError``."""
        # Request bodies may carry credentials, so only the target is logged.
        logger.debug("[%s] url=%s timeout=%s", method, url, total_timeout)
        try:
            async with self.session.request(
                method=method,
                url=url,
                timeout=self._build_timeout(total_timeout),
                **kwargs,
            ) as resp:
                resp.raise_for_status()
                return await self.decode_response(resp)

        except TimeoutError as err:
            msg = "Timeout due to a lack of response from the server."
            raise AsyncCommTimeoutError(msg) from err
        except ConnectionResetError as err:
            msg = "The connection to the server has been disconnected."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientConnectorError as err:
            msg = "The server is not reachable."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientResponseError as err:
            msg = "Error response from the server."
            raise AsyncCommError(msg, response=err) from err
        except aiohttp.ClientError as err:
            msg = f"HTTP client error: {err}"
            raise AsyncCommError(msg) from err


class AsyncCommError(Exception):
    """Base class for asynchronous communication errors.

    Attributes:
        msg (str): Error description, including the HTTP status when one is known.
        status (int | None): HTTP status of an error response, None for transport failures.
    """

    def __init__(self, msg: str | BaseException, **kwargs: Any) -> None:
        self.msg: str = str(msg)
        self.status: int | None = None

        rsp: aiohttp.ClientResponseError | None = kwargs.pop("response", None)
        if isinstance(rsp, aiohttp.ClientResponseError):
            self.status = rsp.status
            self.msg = f"{self.msg}: status='{rsp.status}'"

        super().__init__(self.msg)


class AsyncCommTimeoutError(AsyncCommError):
    """A request did not complete within its timeout."""


class AsyncCommInvalidContentTypeError(AsyncCommError):
    """A response arrived with a content type that has no registered handler."""
