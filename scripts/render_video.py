#!/usr/bin/env python3
"""Submit a personalized plan video render and follow it until it settles."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from planvideo.core.config import get_settings
from planvideo.core.errors import ValidationError
from planvideo.core.telemetry import configure_logging, setup_telemetry, shutdown_telemetry
from planvideo.jobs import payloads
from planvideo.jobs.lifecycle import JobLifecycleManager
from planvideo.schemas.render import FormInput, JobState, JobView


def render_payload(form: FormInput, *, preview: bool) -> str:
    request = payloads.build(form, preview=preview)
    return json.dumps(request.to_payload(), indent=2, ensure_ascii=False)


def _print_view(view: JobView) -> None:
    job = f" job={view.job_id}" if view.job_id else ""
    print(f"[{view.state.value}]{job} {view.progress}% {view.status_message}".rstrip(), flush=True)


async def run(form: FormInput, *, preview: bool) -> JobView:
    settings = get_settings()
    configure_logging()
    telemetry_runtime = setup_telemetry(settings)
    try:
        async with JobLifecycleManager.from_settings(settings) as manager:
            manager.on_state_change(_print_view)
            await manager.submit(payloads.build(form, preview=preview))
            return await manager.wait_until_settled()
    finally:
        shutdown_telemetry(telemetry_runtime)


def main() -> int:
    parser = argparse.ArgumentParser(description="Render a personalized financial-plan video.")
    parser.add_argument(
        "--template",
        choices=sorted(payloads.PAYLOAD_STRATEGIES),
        default="life_goal_maximizer",
        help="Video template to render",
    )
    parser.add_argument("--plan", default="", help="Product plan shown in the give_and_get video (plan1, plan2)")
    parser.add_argument("--user-name", required=True, help="Customer name")
    parser.add_argument("--child-name", default="", help="Child name (life_goal_maximizer)")
    parser.add_argument("--amount", type=int, default=100000, help="Annual premium in rupees")
    parser.add_argument("--tenure", type=int, default=10, help="Premium term in years")
    parser.add_argument("--client-age", type=int, default=30, help="Customer age in years")
    parser.add_argument("--preview", action="store_true", help="Request a fast low-quality preview render")
    parser.add_argument("--dry-run", action="store_true", help="Print the render payload without submitting it")
    args = parser.parse_args()

    form = FormInput(
        template=args.template,
        plan=args.plan,
        user_name=args.user_name,
        child_name=args.child_name,
        amount=args.amount,
        tenure=args.tenure,
        client_age=args.client_age,
    )
    preview = args.preview or get_settings().preview_renders

    try:
        if args.dry_run:
            print(render_payload(form, preview=preview))
            return 0
        payloads.build(form, preview=preview)
    except ValidationError as exc:
        parser.error(str(exc))

    view = asyncio.run(run(form, preview=preview))
    if view.state is JobState.FINISHED:
        print(view.output_url)
        return 0
    print(f"render did not finish: {view.error_message or view.state.value}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
