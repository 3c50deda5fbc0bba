from __future__ import annotations

import platform
import shutil
import subprocess
from datetime import datetime, timezone
from typing import Any

from ..config import Settings
from ..rendering import GenerativeManimRenderBackend


def _run_version_command(command: list[str]) -> tuple[bool, str]:
    try:
        completed = subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=10,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        return False, str(exc)
    output = (completed.stdout or "").strip()
    if completed.returncode != 0:
        return False, output or f"non-zero exit ({completed.returncode})"
    first_line = output.splitlines()[0] if output else ""
    return True, first_line


def _item(name: str, required: bool, found: bool, detail: str, help_url: str) -> dict[str, Any]:
    status = "ok" if found else ("fail" if required else "warn")
    return {
        "name": name,
        "required": required,
        "status": status,
        "found": found,
        "detail": detail,
        "help_url": help_url,
    }


def _check_credential(settings: Settings) -> dict[str, Any]:
    found = bool(settings.openai_api_key)
    return _item(
        "generation_credential",
        required=True,
        found=found,
        detail=f"model {settings.openai_model}" if found else "OPENAI_API_KEY is not set",
        help_url="https://platform.openai.com/api-keys",
    )


def _check_manim_cli() -> dict[str, Any]:
    if shutil.which("manim") is None:
        found, detail = False, "not found"
    else:
        found, detail = _run_version_command(["manim", "--version"])
    return _item(
        "manim",
        required=False,
        found=found,
        detail=detail,
        help_url="https://docs.manim.community/en/stable/installation.html",
    )


def _check_render_api(settings: Settings) -> dict[str, Any]:
    required = settings.render_backend == "generative_manim"
    if not required:
        return _item(
            "render_api",
            required=False,
            found=True,
            detail="simulated renderer in use",
            help_url="https://github.com/marcelo-earth/generative-manim",
        )
    found, detail = GenerativeManimRenderBackend(settings.render_api_url).check_health()
    return _item(
        "render_api",
        required=True,
        found=found,
        detail=f"{settings.render_api_url}: {detail}",
        help_url="https://github.com/marcelo-earth/generative-manim",
    )


def check_pipeline_dependencies(settings: Settings) -> dict[str, Any]:
    items = [_check_credential(settings), _check_manim_cli(), _check_render_api(settings)]
    statuses = {item["status"] for item in items}
    if "fail" in statuses:
        overall = "fail"
    elif "warn" in statuses:
        overall = "warn"
    else:
        overall = "ok"
    return {
        "overall": overall,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "platform": {
            "system": platform.system(),
            "release": platform.release(),
            "python": platform.python_version(),
        },
        "dependencies": items,
    }
