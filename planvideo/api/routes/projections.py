from fastapi import APIRouter, Query

from planvideo.jobs.projection import HORIZON_YEARS, project
from planvideo.schemas.render import ProjectionOut

router = APIRouter()


@router.get("", response_model=ProjectionOut)
async def get_projection(
    premium: float = Query(gt=0),
    term_years: int = Query(ge=1, le=HORIZON_YEARS),
) -> ProjectionOut:
    projection = project(premium, term_years)
    return ProjectionOut(
        premium=projection.premium,
        term_years=projection.term_years,
        withdrawals=projection.withdrawals,
        maturity_at_8=projection.maturity_at_8,
        maturity_at_4=projection.maturity_at_4,
    )
