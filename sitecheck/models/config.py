"""Configuration models for the browser and HTTP testers."""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class ViewportConfig(BaseModel):
    width: int = 1280
    height: int = 720


class BrowserConfig(BaseModel):
    browser: str = "chromium"  # chromium, firefox, webkit
    headless: bool = True
    language: str = "en"
    default_download_path: str = ""
    disable_gpu: bool = False
    accept_insecure_certs: bool = False
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)


class SiteCheckConfig(BaseModel):
    # Waits
    wait_timeout_seconds: float = 20.0
    http_timeout_seconds: float = 20.0
    http_follow_redirects: bool = True
    interaction_retries: int = 3

    # Failure reporting: raise one aggregate error, or return the errors as data
    exceptions_enabled: bool = True

    # Placeholder -> replacement, applied to urls and expected texts
    wildcards: dict[str, str] = Field(default_factory=dict)

    # Console errors containing any of these texts never fail a check
    ignore_console_errors: list[str] = Field(default_factory=list)

    # A loaded page whose title contains any of these fails the state check
    forbidden_title_texts: list[str] = Field(
        default_factory=lambda: ["404 Not Found", "Error 404 page"]
    )

    browser: BrowserConfig = Field(default_factory=BrowserConfig)

    @field_validator("wildcards", mode="before")
    @classmethod
    def resolve_env_wildcards(cls, v: dict) -> dict:
        if not isinstance(v, dict):
            return v
        resolved = {}
        for key, value in v.items():
            if isinstance(value, str) and value.startswith("env:"):
                env_var = value[4:]
                env_value = os.environ.get(env_var)
                if env_value is None:
                    raise ValueError(f"Environment variable '{env_var}' not set for wildcard '{key}'")
                value = env_value
            resolved[key] = value
        return resolved

    @property
    def wait_timeout_ms(self) -> int:
        return int(self.wait_timeout_seconds * 1000)

    @classmethod
    def load(cls, path: str | Path) -> "SiteCheckConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
