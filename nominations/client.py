# nominations/client.py
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable, Optional, Tuple, TypeVar

import requests
from django.conf import settings

from .records import AthleteRecord, FieldUpdate, NominationPayload, NominationRecord, RepositoryResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ---------- HTTP session ----------

UA = "FederationAdmin/1.0 (nominations client)"
TIMEOUT = settings.NOMINATIONS_REQUEST_TIMEOUT

HEADERS = {"User-Agent": UA, "Accept": "application/json"}

_local = threading.local()


def thread_session() -> requests.Session:
    """Return the calling thread's Session, creating it on first use."""
    session = getattr(_local, "session", None)
    if session is None:
        session = _local.session = requests.Session()
        session.headers.update(HEADERS)
    return session


def _url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def _unwrap(
    response: requests.Response,
    convert: Callable[[Any], T],
) -> RepositoryResult[T]:
    try:
        body = response.json()
    except ValueError:
        logger.warning("non-JSON response from %s (HTTP %s)", response.url, response.status_code)
        return RepositoryResult.failure(f"Unexpected response from server (HTTP {response.status_code})")

    if not isinstance(body, dict) or "success" not in body:
        if response.status_code >= 400:
            return RepositoryResult.failure(f"Request failed (HTTP {response.status_code})")
        return RepositoryResult.failure("Malformed response from server")
    if not body["success"]:
        return RepositoryResult.failure(body.get("error") or f"Request failed (HTTP {response.status_code})")
    try:
        return RepositoryResult.ok(convert(body.get("data")))
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("could not read response data from %s: %s", response.url, exc)
        return RepositoryResult.failure("Malformed response from server")


def _nominations(data: Any) -> list[NominationRecord]:
    return [NominationRecord.from_dict(item) for item in data or []]


class ApiClient:
    """Shared request handling: every call comes back as a result envelope."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        auth: Optional[Tuple[str, str]] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = base_url or settings.NOMINATIONS_API_URL
        self.auth = auth
        self.session = session
        self.timeout = timeout if timeout is not None else TIMEOUT

    def _call(
        self,
        method: str,
        path: str,
        convert: Callable[[Any], T],
        **kwargs: Any,
    ) -> RepositoryResult[T]:
        url = _url(self.base_url, path)
        try:
            r = (self.session or thread_session()).request(method, url, auth=self.auth, timeout=self.timeout, **kwargs)
        except requests.Timeout:
            logger.warning("%s %s timed out after %ss", method, url, self.timeout)
            return RepositoryResult.failure("The server took too long to respond")
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            return RepositoryResult.failure(f"Could not reach the server: {exc}")
        return _unwrap(r, convert)


class HttpNominationRepository(ApiClient):
    """Nomination repository that talks to the nominations REST API."""

    @property
    def supports_concurrent_calls(self) -> bool:
        # An injected Session is shared by every thread, so deletions stay sequential.
        return self.session is None

    def fetch_by_competition(self, competition_id: int) -> RepositoryResult[list[NominationRecord]]:
        return self._call("GET", f"nominations/competition/{competition_id}/", _nominations)

    def fetch_by_competition_and_weight_categories(
        self, competition_id: int, weight_categories: Iterable[str]
    ) -> RepositoryResult[list[NominationRecord]]:
        params = {"weight_categories": ",".join(weight_categories)}
        return self._call(
            "GET",
            f"nominations/competition/{competition_id}/weight-categories/",
            _nominations,
            params=params,
        )

    def create(self, payload: NominationPayload) -> RepositoryResult[NominationRecord]:
        return self._call("POST", "nominations/", NominationRecord.from_dict, json=payload.to_dict())

    def batch_create(self, payloads: list[NominationPayload]) -> RepositoryResult[list[NominationRecord]]:
        body = {"nominations": [payload.to_dict() for payload in payloads]}
        return self._call("POST", "nominations/batch/", _nominations, json=body)

    def delete(self, nomination_id: int) -> RepositoryResult[None]:
        return self._call("DELETE", f"nominations/{nomination_id}/", lambda data: None)

    def batch_update_fields(self, updates: list[FieldUpdate]) -> RepositoryResult[list[NominationRecord]]:
        body = {"nominations": [update.to_dict() for update in updates]}
        return self._call("PATCH", "nominations/batch/", _nominations, json=body)


class HttpAthleteDirectory(ApiClient):
    """Athlete directory served by the same API."""

    def fetch_by_federation(self, federation_id: int) -> RepositoryResult[list[AthleteRecord]]:
        return self._call(
            "GET",
            f"athletes/federation/{federation_id}/",
            lambda data: [AthleteRecord.from_dict(item) for item in data or []],
        )
