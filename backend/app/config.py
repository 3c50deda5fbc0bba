from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

SAMPLE_VIDEO_URL = "https://sample-videos.com/video321/mp4/720/big_buck_bunny_720p_1mb.mp4"


def _load_env_files() -> None:
    root = Path(__file__).resolve().parents[2]
    candidates = [
        root / ".env",
        root / ".env.local",
    ]
    for path in candidates:
        if path.exists():
            load_dotenv(path, override=False)


_load_env_files()


@dataclass(frozen=True)
class Settings:
    project_root: Path
    logs_root: Path
    log_level: str
    openai_api_key: str
    openai_model: str
    openai_temperature: float
    cors_origins: list[str]
    retry_max_attempts: int
    retry_base_delay: float
    retry_jitter: float
    render_backend: str
    render_api_url: str
    render_timeout: float
    render_step_delay: float
    sample_video_url: str

    @classmethod
    def from_env(cls) -> "Settings":
        root = Path(__file__).resolve().parents[2]
        logs_root = root / "logs"
        logs_root.mkdir(parents=True, exist_ok=True)
        origins = os.getenv("CORS_ORIGINS", "http://localhost:5173")
        cors_origins = [o.strip() for o in origins.split(",") if o.strip()]
        return cls(
            project_root=root,
            logs_root=logs_root,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            openai_temperature=float(os.getenv("OPENAI_TEMPERATURE", "0.4")),
            cors_origins=cors_origins,
            retry_max_attempts=int(os.getenv("RETRY_MAX_ATTEMPTS", "3")),
            retry_base_delay=float(os.getenv("RETRY_BASE_DELAY", "1.0")),
            retry_jitter=float(os.getenv("RETRY_JITTER", "0.2")),
            render_backend=os.getenv("RENDER_BACKEND", "simulated").strip().lower(),
            render_api_url=os.getenv("RENDER_API_URL", "http://127.0.0.1:8080"),
            render_timeout=float(os.getenv("RENDER_TIMEOUT", "300")),
            render_step_delay=float(os.getenv("RENDER_STEP_DELAY", "1.5")),
            sample_video_url=os.getenv("SAMPLE_VIDEO_URL", SAMPLE_VIDEO_URL),
        )


SETTINGS = Settings.from_env()
