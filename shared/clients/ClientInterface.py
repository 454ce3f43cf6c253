from abc import ABC, abstractmethod
from typing import Any, Callable

import httpx
from httpx._types import QueryParamTypes, RequestContent, RequestData

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ClientNotBootedError(RuntimeError):
    """A request was made before boot() or after close()."""


class ClientRequestError(Exception):
    """The backend answered a request with a non-success status."""

    def __init__(self, method: str, url: str, status_code: int) -> None:
        super().__init__(f"{method} {url} failed with status {status_code}")
        self.method = method
        self.url = url
        self.status_code = status_code


class ClientInterface(ABC):
    """Base of all backend clients (cache stores, file hosts).

    Settings are read as <CLIENT_TYPE>_<ENGINE>_<KEY>, e.g. CACHE_BLOB_TOKEN.
    Each client owns one httpx.AsyncClient between boot() and close().
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)

        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Reads every declared setting once so that missing or malformed values fail at startup.

        Raises:
            ValueError: If a required value is missing or invalid.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "cache"
        """
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """
        Returns the name of the engine used by the client. E.g. "Blob"
        """
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Returns the settings of the engine, validated on construction.
        """
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        """
        Returns:
            str: The full environment variable name. E.g. "TOKEN" -> "CACHE_BLOB_TOKEN"
        """
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def _get_config_getters(self) -> dict[str, Callable[..., Any]]:
        return {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
            "path": self._helper_config.get_path_val,
        }

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Retrieves an engine setting.

        Args:
            raw_key (str): The raw key, without client type and engine prefix
            default (Any): Value if the setting is not set. None makes it required
            val_type (str): "string", "number", "bool", "list" or "path"

        Raises:
            ValueError: If the setting is required but missing, malformed, or val_type is unknown.
        """
        getter = self._get_config_getters().get(val_type)
        if getter is None:
            raise ValueError(f"Unsupported config value type '{val_type}' for env key '{raw_key}' in {self.get_client_type()} client '{self.get_engine_name()}'.")
        return getter(self._get_config_key_name(raw_key), default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """
        Returns the headers authenticating requests to the backend API, {} if it is public.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """
        Returns the base URL that endpoints are appended to (e.g. "https://drive.google.com").
        """
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """
        Returns the endpoint probed by do_healthcheck() (e.g. "/").
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> bool:
        """Returns True if the backend answers the healthcheck endpoint with a success status."""
        try:
            response = await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck())
        except httpx.HTTPError as e:
            self.logging.warning("Healthcheck of %s client '%s' failed: %s", self.get_client_type(), self.get_engine_name(), e)
            return False
        return response.is_success

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Open the HTTP client.

        Args:
            transport (httpx.AsyncBaseTransport | None): Transport override, e.g. httpx.MockTransport in tests.
        """
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise ClientNotBootedError(f"{self.get_client_type()} client '{self.get_engine_name()}' is not booted.")
        return self._client

    def _build_url(self, endpoint: str) -> str:
        endpoint = endpoint.strip()
        path = "/" + endpoint.lstrip("/") if endpoint else ""
        return f"{self._get_base_url().rstrip('/')}{path}"

    async def do_request(
        self,
        method: str = "GET",
        content: RequestContent | None = None,
        data: RequestData | None = None,
        json: dict | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        url: str | None = None,
        additional_headers: dict | None = None,
        follow_redirects: bool = False,
        with_auth: bool = True,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send an HTTP request, to the backend API or to an absolute URL.

        Args:
            method: HTTP method.
            content: Raw body.
            data: Form-encoded body.
            json: JSON body.
            params: Query parameters.
            endpoint: Path below the base URL, ignored when url is set.
            url: Absolute URL, e.g. a public object URL or a file host link.
            additional_headers: Headers merged over the auth header.
            follow_redirects: Follow 3xx responses.
            with_auth: Send the auth header. Off for public URLs that must not see the token.
            raise_on_error: Raise ClientRequestError on any status outside 2xx.

        Raises:
            ClientNotBootedError: If boot() was not called.
            ClientRequestError: On a non-success status, if raise_on_error is set.
            httpx.HTTPError: On network errors and timeouts.
        """
        client = self._get_http_client()
        url = url or self._build_url(endpoint)

        headers: dict = dict(self._get_auth_header()) if with_auth else {}
        headers.update(additional_headers or {})

        body: dict = {}
        # at most one body argument
        if content is not None:
            body["content"] = content
        elif data is not None:
            body["data"] = data
        elif json is not None:
            body["json"] = json

        response = await client.request(
            method,
            url,
            headers=headers,
            params=params,
            timeout=self.timeout,
            follow_redirects=follow_redirects,
            **body,
        )

        if raise_on_error and not response.is_success:
            self.logging.error("%s %s failed with status %d", method, url, response.status_code)
            raise ClientRequestError(method, url, response.status_code)
        return response
