"""Synchronous Lacework REST client with token exchange and error mapping.

This module provides :class:`LaceworkClient`, the blocking HTTP client used
by the ``lwcli integration`` and ``lwcli lql`` commands. It wraps
:class:`httpx.Client` and layers on:

- **Token exchange** -- the access key and secret are traded for a bearer
  token on first use (``POST /api/v1/access/tokens``). The token is cached
  for the lifetime of the client.
- **Sub-account routing** -- the ``Account-Name`` header is sent when the
  profile names a sub-account.
- **Error mapping** -- HTTP status codes and transport failures become
  :class:`~lwcli.exceptions.LwcliError` subclasses.

Every call is single-shot: there is no retry and no pagination.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from lwcli.client.response import error_message
from lwcli.config import resolve_credential
from lwcli.exceptions import (
    AuthError,
    ConnectionError_,
    LwcliError,
    NotFoundError,
    ServerError,
)
from lwcli.lql import prepare_query
from lwcli.models import AccessToken, Integration, LQLQuery, Profile

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
TOKEN_PATH = f"{API_PREFIX}/access/tokens"
INTEGRATIONS_PATH = f"{API_PREFIX}/external/integrations"
LQL_PATH = f"{API_PREFIX}/external/lql"
LQL_QUERY_PATH = f"{LQL_PATH}/query"
LQL_SOURCES_PATH = f"{LQL_PATH}/data_sources"

TOKEN_EXPIRY_SECONDS = 3600


class LaceworkClient:
    """Synchronous client for the Lacework REST API.

    Must be used as a context manager so that the underlying transport is
    opened and closed properly.

    Args:
        profile: Account, access key, sub-account, and request settings.
        api_secret: The resolved secret key. When ``None`` the profile's
            credential source is resolved with
            :func:`~lwcli.config.resolve_credential`.
        transport: Optional :class:`httpx.BaseTransport`, used by tests to
            plug in :class:`httpx.MockTransport`.

    Example::

        with LaceworkClient(profile) as client:
            for integration in client.list_integrations():
                print(integration.name)
    """

    def __init__(
        self,
        profile: Profile,
        api_secret: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._profile = profile
        self._api_secret = api_secret
        self._transport = transport
        self._token: Optional[AccessToken] = None
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> LaceworkClient:
        config = self._profile.request
        self._client = httpx.Client(
            base_url=self._profile.base_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Authentication
    # ------------------------------------------------------------------ #

    @property
    def token(self) -> Optional[str]:
        """The cached bearer token, or ``None`` before the first request."""
        return self._token.token if self._token else None

    def generate_token(self) -> AccessToken:
        """Exchange the access key and secret for a bearer token.

        Raises:
            AuthError: If the API rejects the key pair or returns no token.
        """
        secret = self._api_secret
        if secret is None:
            secret = resolve_credential(self._profile.api_secret)

        logger.debug("requesting access token for account %s", self._profile.account)
        response = self._send(
            "POST",
            TOKEN_PATH,
            headers={"X-LW-UAKS": secret},
            json={"keyId": self._profile.api_key, "expiryTime": TOKEN_EXPIRY_SECONDS},
        )
        body = response.json()
        # The token endpoint wraps the token in the usual ``data`` envelope.
        data = body.get("data") if isinstance(body, dict) else None
        if isinstance(data, list) and data:
            data = data[0]
        if not isinstance(data, dict) or not data.get("token"):
            raise AuthError("Token response did not contain an access token")

        self._token = AccessToken.model_validate(data)
        return self._token

    # ------------------------------------------------------------------ #
    # Integrations
    # ------------------------------------------------------------------ #

    def list_integrations(self) -> list[Integration]:
        """Return every external integration of the account."""
        return self._integrations(self.request("GET", INTEGRATIONS_PATH))

    def get_integration(self, guid: str) -> Integration:
        """Return the integration with *guid*.

        Raises:
            NotFoundError: If no integration has that GUID.
        """
        integrations = self._integrations(self.request("GET", f"{INTEGRATIONS_PATH}/{guid}"))
        if not integrations:
            raise NotFoundError(f"Integration '{guid}' not found")
        return integrations[0]

    def create_integration(self, integration: Integration) -> Integration:
        response = self.request("POST", INTEGRATIONS_PATH, json=integration.to_payload())
        return self._single(response)

    def update_integration(self, integration: Integration) -> Integration:
        """Update an existing integration; ``integration.intg_guid`` must be set."""
        if not integration.intg_guid:
            raise LwcliError("Cannot update an integration without an INTG_GUID")
        payload = integration.to_payload()
        payload["INTG_GUID"] = integration.intg_guid
        response = self.request(
            "PATCH", f"{INTEGRATIONS_PATH}/{integration.intg_guid}", json=payload
        )
        return self._single(response)

    # ------------------------------------------------------------------ #
    # LQL
    # ------------------------------------------------------------------ #

    def create_query(self, blob: str) -> list[LQLQuery]:
        """Save the query in *blob* (LQL text or JSON) and return what was stored.

        Raises:
            InvalidUsageError: If *blob* is not a valid query.
        """
        query = prepare_query(blob, allow_empty_times=True)
        return self._queries(self.request("POST", LQL_PATH, json=query.to_payload()))

    def get_queries(self) -> list[LQLQuery]:
        return self.get_query_by_id("")

    def get_query_by_id(self, query_id: str) -> list[LQLQuery]:
        """Return the saved query *query_id*, or every saved query when it is empty."""
        params = {"LQL_ID": query_id} if query_id else None
        return self._queries(self.request("GET", LQL_PATH, params=params))

    def run_query(self, blob: str, start: str, end: str) -> dict[str, Any]:
        """Run *blob* over the *start*..*end* range and return the raw result.

        Raises:
            InvalidUsageError: If the query or its time range is invalid.
        """
        query = prepare_query(blob, start, end)
        response = self.request("POST", LQL_QUERY_PATH, json=query.to_payload())
        body = response.json()
        return body if isinstance(body, dict) else {"data": body}

    def data_sources(self) -> list[str]:
        """Names of the data sources a query can read from."""
        logger.debug("retrieving LQL data sources")
        body = self.request("GET", LQL_SOURCES_PATH).json()
        data = body.get("data") if isinstance(body, dict) else None
        return [str(source) for source in data or []]

    # ------------------------------------------------------------------ #
    # Low-level request
    # ------------------------------------------------------------------ #

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send an authenticated request, fetching a token first if needed.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On 5xx.
            LwcliError: On any other 4xx.
            ConnectionError_: On network or timeout errors.
        """
        if self._token is None:
            self.generate_token()
        assert self._token is not None

        headers = {"Authorization": f"Bearer {self._token.token}"}
        if self._profile.subaccount:
            headers["Account-Name"] = self._profile.subaccount
        headers.update(kwargs.pop("headers", None) or {})
        return self._send(method, path, headers=headers, **kwargs)

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        assert self._client is not None, "Client not initialised -- use as context manager"

        headers = {"Accept": "application/json"}
        headers.update(kwargs.pop("headers", None) or {})
        logger.debug("%s %s", method, path)
        try:
            response = self._client.request(method, path, headers=headers, **kwargs)
        except httpx.TransportError as exc:
            raise ConnectionError_(f"Connection to {self._profile.base_url} failed: {exc}") from exc

        _map_response_error(response)
        return response

    def _integrations(self, response: httpx.Response) -> list[Integration]:
        body = response.json()
        data = body.get("data", []) if isinstance(body, dict) else []
        return [Integration.model_validate(item) for item in data]

    def _queries(self, response: httpx.Response) -> list[LQLQuery]:
        body = response.json()
        data = body.get("data", []) if isinstance(body, dict) else []
        return [LQLQuery.model_validate(item) for item in data]

    def _single(self, response: httpx.Response) -> Integration:
        integrations = self._integrations(response)
        if not integrations:
            raise ServerError("API response did not contain the integration")
        return integrations[0]


def _map_response_error(response: httpx.Response) -> None:
    """Raise a typed exception for error HTTP status codes."""
    status = response.status_code
    if status < 400:
        return

    msg = error_message(response)
    full_msg = f"HTTP {status}: {msg}" if msg else f"HTTP {status}"

    if status in (401, 403):
        raise AuthError(full_msg)
    if status == 404:
        raise NotFoundError(full_msg)
    if status >= 500:
        raise ServerError(full_msg)
    raise LwcliError(full_msg)
