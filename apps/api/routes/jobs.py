from fastapi import APIRouter, Depends, HTTPException, Query, status as http_status
from sqlalchemy.orm import Session

from apps.api.deps import enforce_rate_limit, get_db
from apps.api.schemas import FacetsOut, JobOut, NearbyJobOut, NearbyOut, SearchOut, StatusPatch
from jobfeed.pipeline.storage import find_by_id, update_status
from jobfeed.query.nearby import nearby
from jobfeed.query.search import SearchParams, search

router = APIRouter()


@router.get("", response_model=SearchOut, dependencies=[Depends(enforce_rate_limit)])
def list_jobs(
    q: str | None = Query(default=None),
    state: str | None = Query(default=None),
    district: str | None = Query(default=None),
    category: str | None = Query(default=None),
    qualification: str | None = Query(default=None),
    job_status: str | None = Query(default=None, alias="status"),
    sort: str | None = Query(default=None),
    page: int = Query(default=1),
    page_size: int | None = Query(default=None, alias="pageSize"),
    db: Session = Depends(get_db),
) -> SearchOut:
    result = search(
        db,
        SearchParams(
            q=q,
            state=state,
            district=district,
            category=category,
            qualification=qualification,
            status=job_status,
            sort=sort,
            page=page,
            page_size=page_size,
        ),
    )
    return SearchOut(
        results=[JobOut.model_validate(j) for j in result.results],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        sort=result.sort,
        facets=FacetsOut(**{
            name: [{"value": f.value, "count": f.count} for f in counts]
            for name, counts in result.facets.items()
        }),
    )


# Registered before /{job_id} so "nearby" is not parsed as an id
@router.get("/nearby", response_model=NearbyOut, dependencies=[Depends(enforce_rate_limit)])
def nearby_jobs(
    lat: float = Query(...),
    lon: float = Query(...),
    radius_km: float | None = Query(default=None, alias="radiusKm"),
    limit: int | None = Query(default=None),
    job_status: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
) -> NearbyOut:
    result = nearby(db, lat, lon, radius_km=radius_km, limit=limit, status=job_status)
    return NearbyOut(
        results=[
            NearbyJobOut(
                **JobOut.model_validate(hit.job).model_dump(),
                distance_km=round(hit.distance_km, 2),
            )
            for hit in result.results
        ],
        total=result.total,
        radius_km=result.radius_km,
        limit=result.limit,
    )


@router.get("/{job_id}", response_model=JobOut, dependencies=[Depends(enforce_rate_limit)])
def get_job(job_id: int, db: Session = Depends(get_db)) -> JobOut:
    job = find_by_id(db, job_id)
    if job is None:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail="job not found")
    return JobOut.model_validate(job)


@router.patch("/{job_id}/status", response_model=JobOut)
def patch_job_status(job_id: int, payload: StatusPatch, db: Session = Depends(get_db)) -> JobOut:
    job = update_status(db, job_id, payload.status)
    if job is None:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail="job not found")
    return JobOut.model_validate(job)
