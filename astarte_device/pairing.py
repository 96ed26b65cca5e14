"""
Pairing API Client

Exchanges a certificate signing request for a client certificate and
discovers the MQTT broker URL of the device.

Each call is a single request over its own connection. Nothing is retried or
cached here: retry, backoff and deadlines belong to the caller.
"""

import logging
from typing import Any, Dict, Optional, Protocol, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from .errors import (
    ApiError,
    InvalidCredentialsError,
    InvalidUrlError,
    RequestError,
    UnexpectedResponseError,
)
from .models import CredentialsRequest, CredentialsResponse, CsrData, DeviceStatusResponse

logger = logging.getLogger(__name__)

MQTT_V1_PROTOCOL = "astarte_mqtt_v1"

ModelT = TypeVar("ModelT", bound=BaseModel)


class PairingContext(Protocol):
    """Read-only device configuration needed to talk to the pairing API."""
    realm: str
    device_id: str
    credentials_secret: str
    pairing_url: str


def build_pairing_url(base_url: str, *segments: str) -> httpx.URL:
    """
    Append path segments to the pairing base URL.

    A trailing slash on the base URL makes no difference to the result, and
    every segment is percent-encoded so it can never introduce extra path
    levels. Query and fragment of the base URL are dropped.

    Raises:
        InvalidUrlError: If the base URL is malformed or is not an absolute
            http(s) URL.
    """
    try:
        url = httpx.URL(base_url)
    except (httpx.InvalidURL, TypeError) as e:
        raise InvalidUrlError(base_url, str(e)) from e

    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidUrlError(base_url, "cannot be a base")

    raw_path = url.raw_path.decode("ascii").partition("?")[0]
    path_segments = raw_path.split("/")[1:]
    while path_segments and path_segments[-1] == "":
        path_segments.pop()

    path_segments.extend(quote(segment, safe="") for segment in segments)

    return url.copy_with(path="/" + "/".join(path_segments), query=None, fragment=None)


def _auth_headers(secret: str) -> Dict[str, str]:
    if not secret:
        raise InvalidCredentialsError("credentials secret is empty")
    if not (secret.isascii() and secret.isprintable()) or secret != secret.strip():
        raise InvalidCredentialsError("credentials secret is not a valid bearer token")
    return {"Authorization": f"Bearer {secret}"}


async def _send(
    method: str,
    url: httpx.URL,
    context: PairingContext,
    json: Optional[Dict[str, Any]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: Optional[float] = None,
) -> httpx.Response:
    headers = _auth_headers(context.credentials_secret)

    logger.debug(f"{method} {url}")
    try:
        async with httpx.AsyncClient(transport=transport, timeout=timeout) as client:
            return await client.request(method, url, headers=headers, json=json)
    except httpx.HTTPError as e:
        raise RequestError(f"error while sending or receiving request: {e}") from e


def _api_error(response: httpx.Response) -> ApiError:
    logger.warning(
        f"Pairing API {response.request.method} {response.request.url.path} "
        f"returned {response.status_code}"
    )
    return ApiError(response.status_code, response.text)


def _parse(response: httpx.Response, model: Type[ModelT]) -> ModelT:
    try:
        document = response.json()
    except ValueError as e:
        raise RequestError(f"response body is not valid JSON: {e}") from e

    try:
        return model.model_validate(document)
    except ValidationError as e:
        raise UnexpectedResponseError(
            f"API response can't be deserialized as {model.__name__}"
        ) from e


async def fetch_credentials(
    context: PairingContext,
    csr: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: Optional[float] = None,
) -> str:
    """
    Exchange a CSR for a client certificate.

    Args:
        context: Device realm, id, credentials secret and pairing URL
        csr: PEM encoded certificate signing request
        transport: Optional httpx transport (used by tests)
        timeout: Optional request timeout in seconds; no timeout by default

    Returns:
        str: PEM encoded client certificate

    Raises:
        PairingError: One of its subclasses, see ``errors``
    """
    url = build_pairing_url(
        context.pairing_url,
        "v1", context.realm, "devices", context.device_id,
        "protocols", MQTT_V1_PROTOCOL, "credentials",
    )
    payload = CredentialsRequest(data=CsrData(csr=csr)).model_dump()

    response = await _send("POST", url, context, json=payload, transport=transport, timeout=timeout)

    if response.status_code != httpx.codes.CREATED:
        raise _api_error(response)

    body = _parse(response, CredentialsResponse)
    logger.info(f"Obtained client certificate for {context.realm}/{context.device_id}")
    return body.data.client_certificate


async def fetch_broker_url(
    context: PairingContext,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: Optional[float] = None,
) -> str:
    """
    Look up the MQTT broker URL the device should connect to.

    Returns:
        str: Broker URL

    Raises:
        PairingError: One of its subclasses, see ``errors``
    """
    url = build_pairing_url(
        context.pairing_url,
        "v1", context.realm, "devices", context.device_id,
    )

    response = await _send("GET", url, context, transport=transport, timeout=timeout)

    if response.status_code != httpx.codes.OK:
        raise _api_error(response)

    body = _parse(response, DeviceStatusResponse)
    return body.data.protocols.astarte_mqtt_v1.broker_url
