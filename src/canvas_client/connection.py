"""
Async HTTP connection to a Canvas server.

The connection is the single place that talks HTTP. It handles:
- Base URL normalization and bearer token authentication
- Lenient retrieval of single entities
- Link header pagination with incremental JSON decoding
- Normalization of the two Canvas error payload shapes
- The three step file upload protocol
"""

from functools import lru_cache
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    BinaryIO,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Type,
    TypeVar,
    Union,
)
from urllib.parse import urlsplit
import json
import logging

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from canvas_client.entities.errors import Error, ErrorResponseDictionary, ErrorResponseList
from canvas_client.entities.files import FileUploadToken
from canvas_client.exceptions import NoResponseError, UploadError, exception_from_response
from canvas_client.parameters import Parameters
from canvas_client.settings import ListSettings
from canvas_client.streaming import iter_json_array

logger = logging.getLogger(__name__)

T = TypeVar("T")

JSON_MEDIA_TYPE = "application/json"
FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"

FormValues = Union[Parameters, Mapping[str, Any]]
ResponseStream = Callable[["Connection", httpx.Response], AsyncIterator[bytes]]
OutputStream = Callable[["Connection", bytes], Awaitable[None]]


def default_response_stream(connection: "Connection", response: httpx.Response) -> AsyncIterator[bytes]:
    return response.aiter_bytes()


async def default_output_stream(connection: "Connection", payload: bytes) -> None:
    return None


def normalize_base_address(url: str) -> str:
    """
    Strip a trailing ``/``, ``v1`` and ``api`` from a server URL.

    ``http://canvas.com``, ``http://canvas.com/api`` and
    ``http://canvas.com/api/v1/`` all become ``http://canvas.com/``.
    """
    parts = url.split("/")
    length = len(parts) - 1
    if not parts[length]:
        length -= 1
    if parts[length].lower() == "v1":
        length -= 1
    if parts[length].lower() == "api":
        length -= 1
    return "/".join(parts[:length + 1]) + "/"


def next_link(response: httpx.Response) -> Optional[str]:
    """Get the ``rel="next"`` URL from the response's Link header, if any."""
    return response.links.get("next", {}).get("url")


@lru_cache(maxsize=None)
def _adapter(model: Any) -> TypeAdapter:
    return TypeAdapter(model)


def _type_name(model: Any) -> str:
    return getattr(model, "__name__", str(model))


def _parse_errors(body: bytes) -> Optional[List[Error]]:
    # Canvas uses two different error shapes, try both
    try:
        return ErrorResponseList.model_validate_json(body).errors
    except PydanticValidationError:
        pass
    try:
        return ErrorResponseDictionary.model_validate_json(body).flatten()
    except PydanticValidationError:
        return None


def _multipart_fields(values: Optional[FormValues]) -> Dict[str, Union[str, List[str]]]:
    fields: Dict[str, Union[str, List[str]]] = {}
    for name, value in Parameters.from_values(values):
        if name not in fields:
            fields[name] = value
        elif isinstance(fields[name], list):
            fields[name].append(value)
        else:
            fields[name] = [fields[name], value]
    return fields


class Connection:
    """
    A connection to a Canvas server over HTTP.

    One connection is shared by all the resource clients of a session. Each
    call owns its own request and response, so concurrent calls are safe.

    Example usage:
        ```python
        async with Connection("https://canvas.example.com", token) as conn:
            user = await conn.retrieve("api/v1/users/self", User)
            async for course in conn.list("api/v1/courses", Course):
                print(course.name)
        ```
    """

    def __init__(
        self,
        url: str,
        token: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        response_stream: Optional[ResponseStream] = None,
        output_stream: Optional[OutputStream] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the connection.

        Args:
            url: URL of the Canvas server (with or without a trailing /api/v1)
            token: The bearer token to authenticate with
            client: An existing httpx client to use; the connection creates
                (and owns) one when omitted
            timeout: Request timeout in seconds for an owned client
            response_stream: Supplies the response bytes to decode; allows
                intercepting incoming content
            output_stream: Called with every outgoing JSON payload before it
                is sent
            logger: Logger for request tracing

        Raises:
            ValueError: If the url or token is empty
        """
        if not url or not url.strip():
            raise ValueError("A Canvas URL is required")
        if not token or not token.strip():
            raise ValueError("A Canvas token is required")

        self._base_address = normalize_base_address(url.strip())
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._client.headers["Authorization"] = f"Bearer {token}"
        self._client.headers["Accept"] = JSON_MEDIA_TYPE
        self._response_stream = response_stream or default_response_stream
        self._output_stream = output_stream or default_output_stream
        self._logger = logger or logging.getLogger(__name__)

    @property
    def base_address(self) -> str:
        """The normalized server address, always ending in ``/``."""
        return self._base_address

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @property
    def response_stream(self) -> ResponseStream:
        return self._response_stream

    @property
    def output_stream(self) -> OutputStream:
        return self._output_stream

    def update_logger(self, logger: logging.Logger) -> None:
        """Use a child of the given logger for request tracing."""
        self._logger = logger.getChild(type(self).__name__)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this connection created it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "Connection":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # =========================================================================
    # Request plumbing
    # =========================================================================

    def ensure_absolute_url(self, url: str) -> str:
        """Resolve a path against the base address; absolute URLs pass through."""
        parts = urlsplit(url)
        if parts.scheme and parts.netloc:
            return url
        return self._base_address + url.lstrip("/")

    async def _send(
        self,
        method: str,
        url: str,
        *,
        content: Optional[bytes] = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        authenticated: bool = True,
        follow_redirects: bool = True,
    ) -> httpx.Response:
        """
        Send a request, returning as soon as the response headers arrive.

        The body is left unread so it can be streamed. Redirects are followed
        unless ``follow_redirects`` is False; httpx drops the Authorization
        header when a redirect leaves the Canvas host.

        Raises:
            NoResponseError: If no response was received
        """
        uri = self.ensure_absolute_url(url)
        self._logger.debug("Sending %s to %s", method, uri)
        request = self._client.build_request(
            method,
            uri,
            content=content,
            data=data,
            files=files,
            headers=headers,
        )
        if not authenticated:
            request.headers.pop("Authorization", None)

        try:
            response = await self._client.send(request, stream=True, follow_redirects=follow_redirects)
        except httpx.TransportError as e:
            self._logger.debug("No response from %s - %s: %s", url, method, e)
            raise NoResponseError(url) from e

        self._logger.debug("Received %s from %s - %s", response.status_code, url, method)
        return response

    async def check_response(self, url: str, response: Optional[httpx.Response]) -> None:
        """
        Raise an exception if the response is missing or failed.

        Raises:
            NoResponseError: If there is no response
            CanvasError: If Canvas returned structured errors
            ConnectionError: For any other non-success response
        """
        if response is None:
            raise NoResponseError(url)
        if response.is_success:
            return

        body = await response.aread()
        errors = _parse_errors(body)
        raise exception_from_response(url, response.status_code, response.text, errors)

    async def _read_body(self, response: httpx.Response) -> bytes:
        try:
            return b"".join([chunk async for chunk in self._response_stream(self, response)])
        finally:
            await response.aclose()

    async def _read_json(self, response: httpx.Response, model: Type[T]) -> Optional[T]:
        """Decode the body as a single item; an empty or invalid body gives None."""
        body = await self._read_body(response)
        if not body.strip():
            return None
        try:
            return _adapter(model).validate_json(body)
        except PydanticValidationError as e:
            self._logger.warning(
                "Unable to decode %s from %s: %s",
                _type_name(model),
                response.url,
                e,
            )
            return None

    async def _complete(
        self,
        url: str,
        response: httpx.Response,
        model: Type[T],
        throw_on_failure: bool,
    ) -> Optional[T]:
        if throw_on_failure:
            await self.check_response(url, response)
        elif not response.is_success:
            await response.aclose()
            return None
        return await self._read_json(response, model)

    async def _finish_raw(self, url: str, response: httpx.Response, throw_on_failure: bool) -> httpx.Response:
        if throw_on_failure:
            await self.check_response(url, response)
        await response.aread()
        return response

    @staticmethod
    def _serialize(body: Any) -> bytes:
        if isinstance(body, BaseModel):
            return body.model_dump_json(exclude_none=True).encode()
        return json.dumps(body, separators=(",", ":")).encode()

    @staticmethod
    def _form_content(values: Optional[FormValues]) -> bytes:
        return Parameters.from_values(values).to_form().encode()

    # =========================================================================
    # Reading
    # =========================================================================

    async def get(
        self,
        url: str,
        throw_on_failure: bool = True,
        *,
        stream: bool = False,
    ) -> httpx.Response:
        """
        Make a GET request.

        Args:
            url: Path or absolute URL
            throw_on_failure: Raise if the server returns a non-success code
            stream: Leave the body unread; the caller must close the response

        Returns:
            The httpx.Response
        """
        response = await self._send("GET", url)
        if throw_on_failure:
            await self.check_response(url, response)
        if not stream:
            await response.aread()
        return response

    async def retrieve(
        self,
        url: str,
        model: Type[T],
        parameters: Optional[Parameters] = None,
    ) -> Optional[T]:
        """
        Retrieve a single entity.

        Any non-success status is treated as the entity not existing.

        Returns:
            The decoded entity, or None if it could not be retrieved
        """
        full_url = url + str(parameters or Parameters())
        self._logger.debug("Retrieving %s entity from %s", _type_name(model), full_url)
        response = await self.get(full_url, throw_on_failure=False, stream=True)
        if not response.is_success:
            await response.aclose()
            return None
        return await self._read_json(response, model)

    async def list(
        self,
        url: str,
        model: Type[T],
        settings: Optional[ListSettings] = None,
        *,
        key: Optional[str] = None,
    ) -> AsyncIterator[T]:
        """
        Iterate over a paginated list of entities.

        Pages are fetched on demand: nothing is requested until the first item
        is pulled, and the next page is only requested once the current one is
        exhausted. Pagination follows the ``rel="next"`` Link header and stops
        after ``settings.max_pages`` pages.

        Args:
            url: Path or absolute URL of the list
            model: The type to decode each item into
            settings: Paging and filter settings
            key: When set, each page is an object holding the items under this
                key rather than a bare array

        Yields:
            The decoded items, in page order; null items are skipped
        """
        settings = settings or ListSettings()
        adapter = _adapter(model)
        page_number = 0
        full_url: Optional[str] = url + str(settings.to_parameters())
        self._logger.debug("Listing %s entities from %s", _type_name(model), full_url)

        while full_url and settings.allows_page(page_number + 1):
            page_number += 1
            response = await self.get(full_url, stream=True)
            try:
                async for item in self._iter_page(response, key):
                    if item is None:
                        continue
                    yield adapter.validate_python(item)
            finally:
                await response.aclose()
            full_url = next_link(response)

    async def _iter_page(self, response: httpx.Response, key: Optional[str]) -> AsyncIterator[Any]:
        chunks = self._response_stream(self, response)
        if key is None:
            async for item in iter_json_array(chunks):
                yield item
            return

        body = b"".join([chunk async for chunk in chunks])
        page = json.loads(body) if body.strip() else None
        for item in (page or {}).get(key) or []:
            yield item

    # =========================================================================
    # Writing
    # =========================================================================

    async def _send_json(
        self,
        method: str,
        url: str,
        model: Type[T],
        body: Any,
        throw_on_failure: bool,
    ) -> Optional[T]:
        payload = self._serialize(body)
        await self._output_stream(self, payload)
        response = await self._send(
            method,
            url,
            content=payload,
            headers={"Content-Type": JSON_MEDIA_TYPE},
        )
        return await self._complete(url, response, model, throw_on_failure)

    async def post_json(
        self,
        url: str,
        model: Type[T],
        body: Any,
        throw_on_failure: bool = True,
    ) -> Optional[T]:
        """
        POST a JSON body and decode the JSON response.

        The status is checked before the body is decoded. An empty or
        undecodable response body gives None.
        """
        return await self._send_json("POST", url, model, body, throw_on_failure)

    async def put_json(
        self,
        url: str,
        model: Type[T],
        body: Any,
        throw_on_failure: bool = True,
    ) -> Optional[T]:
        """PUT a JSON body and decode the JSON response."""
        return await self._send_json("PUT", url, model, body, throw_on_failure)

    async def post_form(
        self,
        url: str,
        model: Type[T],
        form_values: Optional[FormValues] = None,
        throw_on_failure: bool = True,
    ) -> Optional[T]:
        """POST form values and decode the JSON response."""
        response = await self._send(
            "POST",
            url,
            content=self._form_content(form_values),
            headers={"Content-Type": FORM_MEDIA_TYPE},
        )
        return await self._complete(url, response, model, throw_on_failure)

    async def put_form(
        self,
        url: str,
        model: Type[T],
        parameters: Optional[FormValues] = None,
        throw_on_failure: bool = True,
    ) -> Optional[T]:
        """PUT form values and decode the JSON response."""
        response = await self._send(
            "PUT",
            url,
            content=self._form_content(parameters),
            headers={"Content-Type": FORM_MEDIA_TYPE},
        )
        return await self._complete(url, response, model, throw_on_failure)

    async def post(
        self,
        url: str,
        form_values: Optional[FormValues] = None,
        throw_on_failure: bool = True,
    ) -> httpx.Response:
        """POST form values and return the raw response."""
        response = await self._send(
            "POST",
            url,
            content=self._form_content(form_values),
            headers={"Content-Type": FORM_MEDIA_TYPE},
        )
        return await self._finish_raw(url, response, throw_on_failure)

    async def put(
        self,
        url: str,
        form_values: Optional[FormValues] = None,
        throw_on_failure: bool = True,
    ) -> httpx.Response:
        """PUT form values and return the raw response."""
        response = await self._send(
            "PUT",
            url,
            content=self._form_content(form_values),
            headers={"Content-Type": FORM_MEDIA_TYPE},
        )
        return await self._finish_raw(url, response, throw_on_failure)

    async def post_file(
        self,
        url: str,
        stream: Union[BinaryIO, bytes],
        stream_name: str,
        file_name: str,
        form_values: Optional[FormValues] = None,
        throw_on_failure: bool = True,
    ) -> httpx.Response:
        """POST a file as multipart/form-data and return the raw response."""
        response = await self._send(
            "POST",
            url,
            data=_multipart_fields(form_values),
            files={stream_name: (file_name, stream)},
        )
        return await self._finish_raw(url, response, throw_on_failure)

    # =========================================================================
    # File upload
    # =========================================================================

    async def upload_file(
        self,
        url: str,
        model: Type[T],
        stream: Union[BinaryIO, bytes],
        file_name: str,
        form_values: Optional[FormValues] = None,
        *,
        stream_name: str = "file",
    ) -> T:
        """
        Upload a file using the Canvas three step protocol.

        1. Initiate: POST the file description to ``url`` to get an upload token
        2. Transfer: POST the file to the token's upload URL as multipart data
        3. Finalize: decode the entity from the transfer response (200), or
           fetch it from the redirect Location (3xx)

        Args:
            url: The endpoint that starts the upload
            model: The type of the final entity
            stream: The file content
            file_name: The name to send the file under
            form_values: File description (name, size, content_type, ...)
            stream_name: The multipart field holding the file

        Returns:
            The uploaded entity

        Raises:
            UploadError: If any stage fails its own checks
            ConnectionError: If Canvas rejects the initiate request
        """
        self._logger.debug("Starting upload of %s via %s", file_name, url)
        response = await self._send(
            "POST",
            url,
            content=self._form_content(form_values),
            headers={"Content-Type": FORM_MEDIA_TYPE},
        )
        await self.check_response(url, response)
        token = await self._read_json(response, FileUploadToken)
        if token is None or not token.upload_url:
            raise UploadError("initiate", "no upload URL returned", url=url)

        upload_url = token.upload_url
        self._logger.debug("Transferring %s to %s", file_name, upload_url)
        response = await self._send(
            "POST",
            upload_url,
            data=token.form_fields(),
            files={stream_name: (file_name, stream)},
            authenticated=False,
            follow_redirects=False,
        )
        if not 200 <= response.status_code < 400:
            await response.aread()
            raise UploadError(
                "transfer",
                f"storage returned a non-success response code [{response.status_code}]",
                url=upload_url,
                status_code=response.status_code,
                content=response.text,
            )

        if response.status_code == httpx.codes.OK:
            item = await self._read_json(response, model)
        else:
            await response.aclose()
            location = response.headers.get("Location")
            if not location:
                raise UploadError(
                    "finalize",
                    "no location returned",
                    url=upload_url,
                    status_code=response.status_code,
                )
            item = await self.retrieve(str(response.url.join(location)), model)

        if item is None:
            raise UploadError("finalize", f"no {_type_name(model)} returned", url=upload_url)
        self._logger.debug("Uploaded %s", file_name)
        return item
