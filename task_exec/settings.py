from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Settings:
    namespace: str = field(
        default_factory=lambda: os.getenv("K8S_NAMESPACE") or "default"
    )
    image: str = field(default_factory=lambda: os.getenv("TASK_IMAGE", "busybox:1.36"))
    max_attempts: int = field(
        default_factory=lambda: int(os.getenv("TASK_MAX_ATTEMPTS", "120"))
    )
    poll_interval: float = field(
        default_factory=lambda: float(os.getenv("TASK_POLL_INTERVAL", "1.0"))
    )
    read_retries: int = field(
        default_factory=lambda: int(os.getenv("TASK_READ_RETRIES", "0"))
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


def get_settings() -> Settings:
    return Settings()
