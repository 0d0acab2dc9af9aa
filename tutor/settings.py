from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from . import config


@dataclass
class TutorSettings:
    api_key: str = config.OPENAI_API_KEY
    base_url: str = config.LLM_BASE_URL
    model: str = config.LLM_MODEL
    provider: str = config.LLM_PROVIDER
    temperature: float = config.LLM_TEMPERATURE
    timeout: float = config.LLM_TIMEOUT
    trace_header: str = config.TRACE_HEADER
    data_dir: str = config.DATA_DIR
    references: Dict[str, Dict[str, str]] = field(default_factory=lambda: dict(config.REFERENCES))
    telemetry_url: str = config.TELEMETRY_URL
    telemetry_api_key: str = config.TELEMETRY_API_KEY
    telemetry_repo_id: str = config.TELEMETRY_REPO_ID
    telemetry_timeout: float = config.TELEMETRY_TIMEOUT

    @property
    def model_parameters(self) -> Dict[str, float]:
        return {"temperature": self.temperature}


_SETTINGS = TutorSettings()


def get_settings() -> TutorSettings:
    return _SETTINGS
