import requests
from typing import Any, Dict, Optional

from music_admin.core.config import settings
from music_admin.core.credential_store import CredentialStore, credential_store
from music_admin.core.errors import BackendError, SessionExpired, server_message
from music_admin.core.logger import logger
from music_admin.core.single_flight import SingleFlight
from music_admin.services.query_cache import QueryCache, query_cache
from music_admin.services.responses import unwrap

REFRESH_KEY = "auth-refresh"


class ApiClient:
    """
    Thin wrapper around the booking backend REST API.

    Injects the stored bearer token, unwraps nothing on its own (callers get
    the JSON body) and performs one transparent refresh-and-retry when the
    backend answers 401. Concurrent 401s share a single refresh call.

    After a connection failure the next response that gets through marks
    every cached query stale, so screens refetch on reconnect.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        store: Optional[CredentialStore] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        cache: Optional[QueryCache] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.store = store or credential_store
        self.session = session or requests.Session()
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.cache = cache or query_cache
        self._refresh = SingleFlight()
        self._offline = False

    def url(self, path: str) -> str:
        return f"{self.base_url}{settings.API_PREFIX}{path}"

    def _send(self, method: str, path: str, token: Optional[str], fallback: str, **kwargs) -> requests.Response:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = self.session.request(method, self.url(path), headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"❌ {method} {path} failed: {e}")
            self._offline = True
            raise BackendError(fallback) from e

        if self._offline:
            self._offline = False
            logger.info("🔌 Backend reachable again, marking cached queries stale")
            self.cache.mark_reconnected()
        return response

    def _parse(self, method: str, path: str, response: requests.Response, fallback: str) -> Any:
        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = None

        if not response.ok:
            message = server_message(payload, fallback)
            logger.warning(f"⚠️ {method} {path} -> {response.status_code}: {message}")
            raise BackendError(message, status_code=response.status_code, payload=payload)

        return payload

    def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        fallback: str = "Request failed",
    ) -> Any:
        token = self.store.get_token()
        response = self._send(method, path, token, fallback, json=json, params=params)

        if response.status_code == 401:
            logger.info(f"🔑 {method} {path} returned 401, refreshing token")
            token = self.refresh_token(stale_token=token)
            response = self._send(method, path, token, fallback, json=json, params=params)

        return self._parse(method, path, response, fallback)

    def refresh_token(self, stale_token: Optional[str]) -> str:
        """
        Exchange the stale token for a new one. All callers that hit 401 at
        the same time share one refresh request and its outcome.
        """
        return self._refresh.do(REFRESH_KEY, lambda: self._do_refresh(stale_token))

    def _do_refresh(self, stale_token: Optional[str]) -> str:
        # Someone else refreshed between our 401 and acquiring the flight
        current = self.store.get_token()
        if current and current != stale_token:
            return current

        try:
            response = self.session.post(
                self.url("/auth/refresh"),
                json={},
                headers={"Authorization": f"Bearer {stale_token}"} if stale_token else {},
                timeout=self.timeout,
            )
            response.raise_for_status()
            token = (unwrap(response.json()) or {}).get("token")
            if not token:
                raise ValueError("refresh response carried no token")
        except Exception as e:
            logger.error(f"❌ Token refresh failed, clearing session: {e}")
            self.store.clear()
            raise SessionExpired(redirect=settings.LOGIN_ROUTE) from e

        self.store.save(token)
        logger.info("🔑 Token refreshed")
        return token

    def get(self, path: str, params: Optional[Dict[str, Any]] = None, fallback: str = "Failed to load data") -> Any:
        return self.request("GET", path, params=params, fallback=fallback)

    def post(self, path: str, json: Any = None, fallback: str = "Request failed") -> Any:
        return self.request("POST", path, json=json, fallback=fallback)

    def put(self, path: str, json: Any = None, fallback: str = "Request failed") -> Any:
        return self.request("PUT", path, json=json, fallback=fallback)

    def delete(self, path: str, fallback: str = "Request failed") -> Any:
        return self.request("DELETE", path, fallback=fallback)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Authenticate and store the token plus the cached user object."""
        response = self._send("POST", "/auth/login", None, "Login failed", json={"email": email, "password": password})
        data = unwrap(self._parse("POST", "/auth/login", response, "Login failed")) or {}

        token = data.get("token") or data.get("access_token")
        if not token:
            raise BackendError("Login failed", status_code=response.status_code, payload=data)

        user = data.get("user") or {}
        self.store.save(token, user)
        logger.info(f"✅ Logged in as {user.get('email', email)}")
        return user

    def logout(self):
        """
        End the session locally no matter what the backend says. An expired
        token makes the logout call fail its refresh; that is still a logout.
        """
        try:
            self.post("/auth/logout", fallback="Logout failed")
        except (BackendError, SessionExpired) as e:
            logger.warning(f"⚠️ Backend logout failed, clearing local session anyway: {e.message}")
        finally:
            self.store.clear()
            self.cache.clear()

api_client = ApiClient()
