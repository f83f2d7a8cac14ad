from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SCRIPT_PATH = ROOT / "scripts" / "render_video.py"


def _run_script(*args: str) -> subprocess.CompletedProcess[str]:
    env = {
        **os.environ,
        "PYTHONIOENCODING": "utf-8",
        "PYTHONPATH": os.pathsep.join(filter(None, [str(ROOT), os.environ.get("PYTHONPATH")])),
    }
    return subprocess.run(
        [sys.executable, str(SCRIPT_PATH), *args],
        capture_output=True,
        text=True,
        encoding="utf-8",
        env=env,
    )


def test_dry_run_prints_life_goal_payload() -> None:
    completed = _run_script("--dry-run", "--user-name", "Asha", "--child-name", "Mira", "--preview")
    assert completed.returncode == 0, completed.stderr

    payload = json.loads(completed.stdout)
    values = {asset["layerName"]: asset.get("value") for asset in payload["assets"]}
    assert payload["preview"] is True
    assert payload["template"]["id"] == "01K38JV0SPGZJ8RH6RJ44Y57GW"
    assert values["MB_8per"] == "₹1,00,69,967"
    assert values["ParentAge1"] == "45 years"


def test_dry_run_prints_give_and_get_payload() -> None:
    completed = _run_script(
        "--dry-run",
        "--template",
        "give_and_get",
        "--plan",
        "plan2",
        "--user-name",
        "Ravi",
        "--amount",
        "10000",
        "--tenure",
        "5",
    )
    assert completed.returncode == 0, completed.stderr
    payload = json.loads(completed.stdout)
    assert payload["assets"][0]["src"].endswith("Logo_HDFC_Jeevan.png")


def test_incomplete_form_exits_with_usage_error() -> None:
    completed = _run_script("--dry-run", "--user-name", "Asha")
    assert completed.returncode == 2
    assert "child_name" in completed.stderr
