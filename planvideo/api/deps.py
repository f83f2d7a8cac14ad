from functools import lru_cache

from planvideo.core.config import get_settings
from planvideo.jobs.lifecycle import JobLifecycleManager


@lru_cache
def get_job_manager() -> JobLifecycleManager:
    return JobLifecycleManager.from_settings(get_settings())
