from __future__ import annotations
"""
Candidate schema and the boundary that turns backend JSON into it.

The backend is loose about shapes: ids arrive as ``_id`` or ``id``, the
organisation as ``company`` or ``organization``, skills as a list or a
comma separated string, and the whole batch either bare or wrapped in
``{"internships": [...]}``.  All of that is settled here so the stack and
the engine only ever see validated, immutable ``Candidate`` objects.
"""

from typing import Any, Dict, Iterable, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


_KNOWN_KEYS = {
    "_id", "id", "title", "company", "organization", "location",
    "description", "skills", "tags", "stipend", "compensation",
    "source", "provenance",
}


class Candidate(BaseModel):
    """One swipeable internship."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    organization: str = Field(min_length=1)
    location: str = ""
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    compensation: str = ""
    provenance: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", "title", "organization", mode="before")
    @classmethod
    def _strip_required(cls, v):
        return "" if v is None else str(v).strip()


def _coerce_tags(raw) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [t.strip() for t in raw.split(",") if t.strip()]
    if isinstance(raw, (list, tuple)):
        return [str(t).strip() for t in raw if str(t).strip()]
    s = str(raw).strip()
    return [s] if s else []


def _text(raw: Dict[str, Any], *keys: str) -> str:
    for k in keys:
        v = raw.get(k)
        if v is not None and str(v).strip():
            return str(v).strip()
    return ""


def to_candidate(raw: Dict[str, Any]) -> Candidate:
    """
    Build a Candidate from one backend item.

    Raises pydantic.ValidationError when id, title or organisation is missing.
    """
    provenance = _text(raw, "source", "provenance") or None
    return Candidate(
        id=raw.get("_id", raw.get("id")),
        title=raw.get("title"),
        organization=raw.get("company", raw.get("organization")),
        location=_text(raw, "location"),
        description=_text(raw, "description"),
        tags=_coerce_tags(raw.get("skills", raw.get("tags"))),
        compensation=_text(raw, "stipend", "compensation"),
        provenance=provenance,
        extra={k: v for k, v in raw.items() if k not in _KNOWN_KEYS},
    )


def _unwrap(body: Any) -> Iterable[Any]:
    if isinstance(body, dict):
        items = body.get("internships")
        if items is None:
            items = body.get("candidates", [])
        if items is None:
            return []
        if not isinstance(items, list):
            raise ValueError(f"Candidate list has unexpected type: {type(items).__name__}")
        return items
    if isinstance(body, list):
        return body
    raise ValueError(f"Unexpected candidate payload type: {type(body).__name__}")


def parse_candidates(body: Any) -> List[Candidate]:
    """
    Convert a decoded response body into Candidates, preserving order.
    Items that fail validation are dropped with a warning.
    """
    out: List[Candidate] = []
    for i, raw in enumerate(_unwrap(body)):
        if not isinstance(raw, dict):
            logger.warning("Dropping candidate #{}: not an object ({})", i, type(raw).__name__)
            continue
        try:
            out.append(to_candidate(raw))
        except ValidationError as e:
            logger.warning("Dropping candidate #{}: {} validation error(s)", i, e.error_count())
    return out
