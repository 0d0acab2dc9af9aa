from __future__ import annotations

import json
import logging
import os
from typing import Dict, List

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _s(name: str, default: str) -> str:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip()


def _f(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except Exception:
        return default


def _i(name: str, default: int) -> int:
    try:
        return int(float(os.getenv(name, str(default))))
    except Exception:
        return default


def _list(name: str, default: List[str]) -> List[str]:
    v = os.getenv(name)
    if not v:
        return default
    return [part.strip() for part in v.split(",") if part.strip()]


# Completion provider
OPENAI_API_KEY: str = _s("OPENAI_API_KEY", "")
LLM_BASE_URL: str = _s("TUTOR_LLM_BASE_URL", "https://api.openai.com/v1")
LLM_MODEL: str = _s("TUTOR_LLM_MODEL", "gpt-4o-mini")
LLM_PROVIDER: str = _s("TUTOR_LLM_PROVIDER", "openai")
LLM_TEMPERATURE: float = _f("TUTOR_LLM_TEMPERATURE", 0.7)
LLM_TIMEOUT: float = _f("TUTOR_LLM_TIMEOUT", 60.0)

# Header used to correlate provider calls and telemetry with one trace
TRACE_HEADER: str = _s("TUTOR_TRACE_HEADER", "maxim-trace-id")


# Reference documents (target language -> PDF used as grammar/vocabulary authority)
DATA_DIR: str = _s("TUTOR_DATA_DIR", "data")
_DEFAULT_REFERENCES: Dict[str, Dict[str, str]] = {
    "klingon": {
        "name": "klingon-dictionary",
        "path": "Franchise - The Klingon Dictionary.pdf",
    },
}


def load_reference_config(raw: str | None) -> Dict[str, Dict[str, str]]:
    """Parse the TUTOR_REFERENCES_JSON mapping, falling back to the built-in one."""
    if not raw:
        return _DEFAULT_REFERENCES
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("TUTOR_REFERENCES_JSON is not valid JSON, using defaults")
        return _DEFAULT_REFERENCES
    if not isinstance(data, dict):
        logger.warning("TUTOR_REFERENCES_JSON must be an object, using defaults")
        return _DEFAULT_REFERENCES
    out: Dict[str, Dict[str, str]] = {}
    for lang, entry in data.items():
        if isinstance(entry, str):
            entry = {"path": entry}
        if not isinstance(entry, dict) or not entry.get("path"):
            logger.warning(f"Skipping reference entry for {lang!r}: missing path")
            continue
        out[str(lang)] = {
            "name": str(entry.get("name") or f"{str(lang).lower()}-reference"),
            "path": str(entry["path"]),
        }
    return out


REFERENCES: Dict[str, Dict[str, str]] = load_reference_config(os.getenv("TUTOR_REFERENCES_JSON"))


# Telemetry sink (optional; structured log lines are always written)
TELEMETRY_URL: str = _s("TUTOR_TELEMETRY_URL", "")
TELEMETRY_API_KEY: str = _s("TUTOR_TELEMETRY_API_KEY", "")
TELEMETRY_REPO_ID: str = _s("TUTOR_TELEMETRY_REPO_ID", "")
TELEMETRY_TIMEOUT: float = _f("TUTOR_TELEMETRY_TIMEOUT", 5.0)


# HTTP
CORS_ORIGINS: List[str] = _list("TUTOR_CORS_ORIGINS", ["*"])
PORT: int = _i("TUTOR_PORT", 8000)
