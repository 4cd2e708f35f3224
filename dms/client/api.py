"""HTTP transport for the DMS REST API.

Policies:
- The bearer token of the active session is attached to every request.
- 401 while signed in clears the session and raises SessionExpired.
- 401/404 on a read while signed out resolve to None (callers turn that into
  empty results).
- Reads are retried once on connection errors and 5xx responses, never on 4xx.
  Mutations are never retried.
"""

import logging
import os
from typing import Any, Dict, Optional

import requests
from dotenv import load_dotenv

from dms.client.errors import ApiError, SessionExpired
from dms.client.session import QueryCache, SessionContext

load_dotenv()

logger = logging.getLogger(__name__)

DMS_API_BASE_URL = os.getenv("DMS_API_BASE_URL", "http://localhost:8000")
DMS_HTTP_TIMEOUT_SEC = float(os.getenv("DMS_HTTP_TIMEOUT_SEC", "10"))
API_PREFIX = "/api/v1"

# Reads get one extra attempt
READ_RETRIES = 1


class ApiClient:
    """Client for the DMS API."""

    def __init__(
        self,
        session: SessionContext,
        base_url: Optional[str] = None,
        http: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        cache: Optional[QueryCache] = None,
    ):
        """Initialize the client.

        Args:
            session: Identity/selected-plant state shared with the caller
            base_url: API origin. If None, reads DMS_API_BASE_URL.
            http: requests.Session to use (one is created when omitted)
            timeout: Per-request timeout in seconds
            cache: Read cache; defaults to one subscribed to `session`
        """
        self.session = session
        self.base_url = (base_url or DMS_API_BASE_URL).rstrip("/")
        self.http = http or requests.Session()
        self.timeout = timeout if timeout is not None else DMS_HTTP_TIMEOUT_SEC
        self.cache = cache if cache is not None else QueryCache(session)

    def _url(self, path: str) -> str:
        return f"{self.base_url}{API_PREFIX}{path}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        return headers

    def _send(self, method: str, path: str, params=None, json=None) -> requests.Response:
        return self.http.request(
            method,
            self._url(path),
            params={k: v for k, v in (params or {}).items() if v is not None} or None,
            json=json,
            headers=self._headers(),
            timeout=self.timeout,
        )

    def _handle_auth_failure(self, response: requests.Response) -> None:
        if response.status_code == 401 and self.session.is_authenticated:
            logger.info("Session expired; signing out")
            self.session.sign_out()
            raise SessionExpired()

    def get(self, path: str, params: Optional[Dict[str, Any]] = None, use_cache: bool = True) -> Optional[dict]:
        """GET a resource and return the decoded body, or None for 401/404 while signed out."""
        key = QueryCache.key(path, params)
        if use_cache and key in self.cache:
            return self.cache.get(key)

        attempts = 0
        while True:
            attempts += 1
            try:
                response = self._send("GET", path, params=params)
            except (requests.ConnectionError, requests.Timeout) as e:
                if attempts <= READ_RETRIES:
                    logger.warning(f"GET {path} failed ({type(e).__name__}); retrying")
                    continue
                raise ApiError(0, "NETWORK_ERROR", f"Could not reach the server: {str(e)}") from e

            if response.status_code >= 500 and attempts <= READ_RETRIES:
                logger.warning(f"GET {path} returned {response.status_code}; retrying")
                continue
            break

        self._handle_auth_failure(response)
        if response.status_code in (401, 404) and not self.session.is_authenticated:
            return None
        if not response.ok:
            raise ApiError.from_response(response)

        body = response.json()
        if use_cache:
            self.cache.set(key, body)
        return body

    def mutate(self, method: str, path: str, json: Optional[dict] = None, params: Optional[Dict[str, Any]] = None) -> dict:
        """Send a POST/PUT/DELETE once and return the decoded body."""
        try:
            response = self._send(method, path, params=params, json=json)
        except requests.RequestException as e:
            raise ApiError(0, "NETWORK_ERROR", f"Could not reach the server: {str(e)}") from e

        self._handle_auth_failure(response)
        if not response.ok:
            raise ApiError.from_response(response)
        return response.json() if response.content else {}

    def post(self, path: str, json: Optional[dict] = None) -> dict:
        return self.mutate("POST", path, json=json)

    def put(self, path: str, json: Optional[dict] = None) -> dict:
        return self.mutate("PUT", path, json=json)

    def delete(self, path: str) -> dict:
        return self.mutate("DELETE", path)

    def login(self, id_token: str) -> dict:
        """Exchange an identity-provider token and sign the session in.

        Returns:
            The signed-in user as returned by the server
        """
        body = self.post("/auth/login", json={"idToken": id_token})
        data = body["data"]
        self.session.sign_in(data["user"]["id"], data["accessToken"])
        return data["user"]

    def logout(self) -> None:
        self.session.sign_out()
