"""Scripted fake MQM server served through httpx.MockTransport."""

import threading
import time

import httpx

LOCATION = "http://mqm.test"
SHARED_SPACE = "1001"
CLIENT_TYPE = "test-client"
LOGIN_PATH = "/authentication/sign_in"


def login_ok(token: str) -> httpx.Response:
    """Successful sign-in response carrying a session cookie."""
    return httpx.Response(
        200,
        headers={"Set-Cookie": f"LWSSO_COOKIE_KEY={token}; Path=/"},
    )


def collection(*entities: dict, total_count: int | None = None) -> httpx.Response:
    """200 response with a ``{"data": [...], "total_count": N}`` body."""
    total = len(entities) if total_count is None else total_count
    return httpx.Response(200, json={"data": list(entities), "total_count": total})


def _next(queue: list):
    return queue.pop(0) if queue else None


class FakeMqmServer:
    """Scripted MQM server.

    Login requests get the next queued login response, or a fresh
    ``token-<n>`` cookie when the queue is empty. Other requests get the next
    queued API response, or an empty collection. Queued exceptions are
    raised instead of returning a response. API requests carrying a session
    cookie listed in ``rejected_tokens`` get a 401 without consuming the
    queue.
    """

    def __init__(self, login_delay: float = 0.0):
        self.login_delay = login_delay
        self.login_responses: list[httpx.Response | Exception] = []
        self.api_responses: list[httpx.Response | Exception] = []
        self.login_requests: list[httpx.Request] = []
        self.api_requests: list[httpx.Request] = []
        self.rejected_tokens: set[str] = set()
        self._lock = threading.Lock()

    @property
    def login_count(self) -> int:
        return len(self.login_requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        # Record what was sent; the client may re-send and mutate the same object
        request = httpx.Request(
            request.method,
            request.url,
            headers=request.headers.copy(),
            content=request.read(),
        )
        if request.url.path == LOGIN_PATH:
            with self._lock:
                self.login_requests.append(request)
                count = len(self.login_requests)
                scripted = _next(self.login_responses)
            if self.login_delay:
                time.sleep(self.login_delay)
            result = scripted if scripted is not None else login_ok(f"token-{count}")
        else:
            with self._lock:
                self.api_requests.append(request)
                if self._rejects(request):
                    return httpx.Response(401)
                scripted = _next(self.api_responses)
            result = scripted if scripted is not None else collection()

        if isinstance(result, Exception):
            raise result
        return result

    def _rejects(self, request: httpx.Request) -> bool:
        cookie = request.headers.get("Cookie", "")
        return any(cookie == f"LWSSO_COOKIE_KEY={t}" for t in self.rejected_tokens)
