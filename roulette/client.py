from __future__ import annotations
"""
HTTP side of the roulette: where candidates come from and where
decisions go.

Every transport problem, HTTP error status or undecodable body is turned
into a :class:`PortalError` subclass here, so callers only ever have one
family of exceptions to catch at the boundary.
"""

from typing import TYPE_CHECKING, Dict, List, Optional, Protocol

import httpx
from loguru import logger

from .candidate import Candidate, parse_candidates
from .config import (
    API_BASE_URL,
    API_TOKEN,
    CANDIDATES_PATH,
    DECISION_PATH,
    HTTP_TIMEOUT,
    HTTP_USER_AGENT,
)

if TYPE_CHECKING:  # pragma: no cover
    from .decision import Decision


class PortalError(Exception):
    """Base for failures talking to the backend."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ReplenishmentFailure(PortalError):
    """Fetching a candidate batch failed."""


class PersistFailure(PortalError):
    """Recording a decision failed."""


class CandidateSource(Protocol):
    async def fetch_candidates(self, count: int) -> List[Candidate]: ...


class DecisionSink(Protocol):
    async def record_decision(self, candidate_id: str, decision: "Decision") -> None: ...


def _http_client(base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=base_url,
        headers={"User-Agent": HTTP_USER_AGENT, "Content-Type": "application/json"},
        timeout=httpx.Timeout(HTTP_TIMEOUT),
        follow_redirects=True,
        transport=transport,
    )


class PortalClient:
    """
    Candidate source and decision sink backed by the portal REST API.

    A bearer token is sent when configured; a 401 response drops it, as the
    stored token is no longer any good.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        token: Optional[str] = API_TOKEN,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self.token = token
        self._client = _http_client(base_url, transport=transport)

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    def _check(self, r: httpx.Response, error: type) -> None:
        if r.status_code == 401 and self.token:
            logger.warning("Backend rejected the bearer token; clearing it")
            self.token = None
        if r.status_code >= 400:
            raise error(f"HTTP {r.status_code} for {r.request.url}", status_code=r.status_code)

    async def fetch_candidates(self, count: int) -> List[Candidate]:
        try:
            r = await self._client.get(CANDIDATES_PATH, params={"count": count}, headers=self._headers())
        except httpx.HTTPError as e:
            raise ReplenishmentFailure(f"Candidate fetch failed: {e}") from e
        self._check(r, ReplenishmentFailure)
        try:
            candidates = parse_candidates(r.json())
        except ValueError as e:
            raise ReplenishmentFailure(f"Malformed candidate payload: {e}") from e
        logger.info("Fetched {} candidate(s) from {}", len(candidates), self.base_url)
        return candidates[:count]

    async def record_decision(self, candidate_id: str, decision: "Decision") -> None:
        payload = {"internshipId": candidate_id, "direction": decision.direction}
        try:
            r = await self._client.post(DECISION_PATH, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise PersistFailure(f"Saving decision for {candidate_id} failed: {e}") from e
        self._check(r, PersistFailure)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "PortalClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()
