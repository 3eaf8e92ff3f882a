"""
Keyword + facet search over the jobs table.

Text matching runs against Job.search_vector (space-padded lowercase tokens),
so every query token must prefix-match some token of the record. Ranking for
`relevance` is a weighted count of where each token shows up:

    title 4, organisation 2, category/qualification 1, anywhere 1

Facets are disjunctive: the `state` facet is counted with every filter applied
except `state` itself (same for category and status), so a UI can offer the
sibling values of a filter that is already selected.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel
from sqlalchemy import case, func, literal
from sqlalchemy.orm import Session

from db.schemas import Job
from jobfeed.errors import InvalidQueryError
from jobfeed.models.job import JOB_STATUSES
from jobfeed.pipeline.normalize import tokenize
from jobfeed.pipeline.storage import query_deadline
from jobfeed.settings import settings

SORTS = ("latest", "closing_soon", "relevance")
FILTER_FIELDS = ("state", "district", "category", "qualification", "status")
FACET_FIELDS = ("state", "category", "status")
MAX_QUERY_CHARS = 200

_RANK_WEIGHTS = (
    (Job.title, 4),
    (Job.organisation, 2),
    (Job.category, 1),
    (Job.qualification, 1),
)


class SearchParams(BaseModel):
    q: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None
    category: Optional[str] = None
    qualification: Optional[str] = None
    status: Optional[str] = None
    sort: Optional[str] = None
    page: int = 1
    page_size: Optional[int] = None


@dataclass
class FacetCount:
    value: str
    count: int


@dataclass
class SearchPage:
    results: list[Job]
    total: int
    page: int
    page_size: int
    sort: str
    facets: dict[str, list[FacetCount]] = field(default_factory=dict)


def clamp_page_size(page_size: Optional[int]) -> int:
    if page_size is None:
        return settings.SEARCH_PAGE_SIZE_DEFAULT
    return max(1, min(page_size, settings.SEARCH_PAGE_SIZE_MAX))


def normalize_params(params: SearchParams) -> SearchParams:
    """Validate and clamp caller input; raises InvalidQueryError for bad values."""
    data: dict[str, Any] = {}
    for name in ("q",) + FILTER_FIELDS:
        value = getattr(params, name)
        value = value.strip() if isinstance(value, str) else value
        data[name] = value or None
    if data["q"]:
        data["q"] = data["q"][:MAX_QUERY_CHARS]

    if data["status"] is not None and data["status"] not in JOB_STATUSES:
        raise InvalidQueryError(f"status must be one of {', '.join(JOB_STATUSES)}")
    if params.sort is not None and params.sort not in SORTS:
        raise InvalidQueryError(f"sort must be one of {', '.join(SORTS)}")
    if params.page < 1:
        raise InvalidQueryError("page must be >= 1")

    tokens = tokenize(data["q"])
    sort = params.sort or ("relevance" if tokens else "latest")
    if sort == "relevance" and not tokens:
        sort = "latest"

    data.update(sort=sort, page=params.page, page_size=clamp_page_size(params.page_size))
    return SearchParams(**data)


def _like_token(tok: str) -> str:
    return tok.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _filter_clauses(params: SearchParams, exclude: Optional[str] = None) -> list:
    clauses = []
    for tok in tokenize(params.q):
        clauses.append(Job.search_vector.like(f"% {_like_token(tok)}%", escape="\\"))
    for name in FILTER_FIELDS:
        value = getattr(params, name)
        if value is None or name == exclude:
            continue
        col = getattr(Job, name)
        if name == "status":
            clauses.append(col == value)
        else:
            clauses.append(func.lower(col) == value.lower())
    return clauses


def _rank_expr(params: SearchParams):
    rank = literal(0)
    for tok in tokenize(params.q):
        pattern = f"%{_like_token(tok)}%"
        for col, weight in _RANK_WEIGHTS:
            rank = rank + case((func.lower(col).like(pattern, escape="\\"), weight), else_=0)
        rank = rank + case((Job.search_vector.like(f"% {_like_token(tok)}%", escape="\\"), 1), else_=0)
    return rank


def _order_by(params: SearchParams) -> list:
    if params.sort == "closing_soon":
        return [Job.apply_end_date.is_(None), Job.apply_end_date.asc(), Job.id.asc()]
    if params.sort == "relevance":
        return [_rank_expr(params).desc(), Job.published_at.desc(), Job.id.asc()]
    return [Job.published_at.desc(), Job.id.asc()]


def facet_counts(sess: Session, params: SearchParams) -> dict[str, list[FacetCount]]:
    facets: dict[str, list[FacetCount]] = {}
    for name in FACET_FIELDS:
        col = getattr(Job, name)
        n = func.count(Job.id)
        rows = (
            sess.query(col, n)
            .filter(col.isnot(None), *_filter_clauses(params, exclude=name))
            .group_by(col)
            .order_by(n.desc(), col.asc())
            .all()
        )
        facets[name] = [FacetCount(value=v, count=c) for v, c in rows]
    return facets


def search(
    sess: Session,
    params: SearchParams,
    timeout_s: Optional[float] = None,
    with_facets: bool = True,
) -> SearchPage:
    params = normalize_params(params)
    clauses = _filter_clauses(params)
    offset = (params.page - 1) * params.page_size
    timeout_s = settings.QUERY_TIMEOUT_S if timeout_s is None else timeout_s

    with query_deadline(sess, timeout_s):
        total = sess.query(func.count(Job.id)).filter(*clauses).scalar() or 0
        results = (
            sess.query(Job)
            .filter(*clauses)
            .order_by(*_order_by(params))
            .offset(offset)
            .limit(params.page_size)
            .all()
        )
        facets = facet_counts(sess, params) if with_facets else {}

    return SearchPage(
        results=results,
        total=total,
        page=params.page,
        page_size=params.page_size,
        sort=params.sort,
        facets=facets,
    )
