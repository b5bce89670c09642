from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from src.flow.domain.exceptions import (
    ApplicationError,
    InvalidRequestError,
    InvalidResponseError,
    TransportFailureError,
)
from src.setup.client_config import ClientSettings

logger = logging.getLogger(__name__)

SUCCESS_CODE = 200
DataT = TypeVar("DataT")


class ApiEnvelope(BaseModel, Generic[DataT]):
    """``{code, message, data}`` wrapper carried by every backend response."""

    code: int
    message: str = ""
    data: DataT | None = None


class ApiClient:
    """
    Thin async wrapper over ``httpx.AsyncClient``.

    Decodes the response envelope and translates every failure into the
    client's error taxonomy, so callers only ever see ``FlowError`` subclasses.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        debug_log: bool = False,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self._debug_log = debug_log

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> ApiClient:
        return cls(
            settings.API_BASE_URL,
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
            debug_log=settings.DEBUG_HTTP_LOG,
        )

    async def get(
        self, path: str, data_type: Any, *, params: dict[str, str] | None = None
    ) -> Any:
        return await self._send("GET", path, data_type, params=params)

    async def post_multipart(
        self,
        path: str,
        data_type: Any,
        *,
        fields: dict[str, str],
        files: dict[str, tuple[str, bytes, str]],
    ) -> Any:
        return await self._send("POST", path, data_type, data=fields, files=files)

    async def _send(self, method: str, path: str, data_type: Any, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise InvalidRequestError(f"Cannot build request for {path}: {exc}") from exc
        except httpx.DecodingError as exc:
            raise InvalidResponseError(f"{method} {path} returned an undecodable body: {exc}") from exc
        except httpx.RequestError as exc:
            raise TransportFailureError(f"{method} {path} failed: {exc}") from exc

        logger.debug(
            "API response",
            extra={"method": method, "path": path, "status_code": response.status_code},
        )
        if self._debug_log:
            logger.debug("API response body: %s", response.text)

        if not response.is_success:
            raise InvalidResponseError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            envelope = ApiEnvelope[data_type].model_validate_json(response.content)
        except ValidationError as exc:
            raise InvalidResponseError(
                f"{method} {path} returned an unexpected body: {exc.error_count()} errors",
                status_code=response.status_code,
            ) from exc

        if envelope.code != SUCCESS_CODE:
            raise ApplicationError(envelope.message, envelope.code)
        return envelope.data

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
