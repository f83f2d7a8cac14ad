from fastapi import APIRouter, Depends, HTTPException, status

from planvideo.api.deps import get_job_manager
from planvideo.core.config import Settings, get_settings
from planvideo.core.errors import JobStateError, ValidationError
from planvideo.jobs import payloads
from planvideo.jobs.lifecycle import JobLifecycleManager
from planvideo.schemas.render import FormInput, JobViewOut

router = APIRouter()


@router.post("", response_model=JobViewOut, status_code=status.HTTP_202_ACCEPTED)
async def submit_render_job(
    form: FormInput,
    settings: Settings = Depends(get_settings),
    manager: JobLifecycleManager = Depends(get_job_manager),
) -> JobViewOut:
    # Rejected forms never reach the manager, so the current job view is left as it was.
    try:
        request = payloads.build(form, preview=settings.preview_renders)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    try:
        view = await manager.submit(request)
    except JobStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return JobViewOut.from_view(view)


@router.get("/current", response_model=JobViewOut)
async def get_current_render_job(manager: JobLifecycleManager = Depends(get_job_manager)) -> JobViewOut:
    return JobViewOut.from_view(manager.view)


@router.post("/current/check", response_model=JobViewOut)
async def check_current_render_job(manager: JobLifecycleManager = Depends(get_job_manager)) -> JobViewOut:
    return JobViewOut.from_view(await manager.check_now())


@router.post("/current/cancel", response_model=JobViewOut)
async def cancel_current_render_job(manager: JobLifecycleManager = Depends(get_job_manager)) -> JobViewOut:
    return JobViewOut.from_view(manager.cancel())


@router.post("/current/reset", response_model=JobViewOut)
async def reset_current_render_job(manager: JobLifecycleManager = Depends(get_job_manager)) -> JobViewOut:
    return JobViewOut.from_view(manager.reset())
