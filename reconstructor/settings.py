# reconstructor/settings.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import commentjson
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

logger = logging.getLogger("evoki_reconstructor")

# --- Configuration ---
PROJECT_ID = os.getenv("GOOGLE_CLOUD_PROJECT", "your-project-id")
REGION = os.getenv("GOOGLE_CLOUD_REGION", "us-central1")

DEFAULT_MODEL = os.getenv("RECONSTRUCTOR_MODEL", "gemini-2.5-pro")
LLM_TIMEOUT = float(os.getenv("RECONSTRUCTOR_LLM_TIMEOUT", "300"))
SETTINGS_PATH = os.getenv("RECONSTRUCTOR_SETTINGS_PATH")

# Prompt budgets (characters)
MAIN_CHAR_BUDGET = 15000
SKELETON_CHAR_BUDGET = 5000
DENSE_CHAR_BUDGET = 5000
INDEX_CHAR_BUDGET = 8000

# Retry policy for the generation endpoint
MAX_ATTEMPTS = 3
BACKOFF_BASE_SECONDS = 1.0
BACKOFF_JITTER_SECONDS = 0.2

DOWNLOAD_FILENAME = "evoki_rekonstruiert.json"


@dataclass(frozen=True)
class GenerationSettings:
    """
    Parameters sent with every generation request.
    Kept low on temperature/top_k/top_p so the model stays close to deterministic.
    """
    model: str = DEFAULT_MODEL
    temperature: float = 0.1
    top_k: int = 32
    top_p: float = 0.8
    max_output_tokens: int = 8192
    response_mime_type: str = "application/json"
    timeout: Optional[float] = LLM_TIMEOUT


_NUMBER = (int, float)
_FIELD_TYPES: Dict[str, tuple] = {
    "model": (str,),
    "temperature": _NUMBER,
    "top_k": (int,),
    "top_p": _NUMBER,
    "max_output_tokens": (int,),
    "response_mime_type": (str,),
    "timeout": _NUMBER,
}
_NULLABLE = {"timeout"}


def _check_value(name: str, value: Any, cfg_path: Path) -> Any:
    if value is None and name in _NULLABLE:
        return None
    expected = _FIELD_TYPES[name]
    # bool is an int subclass but never a valid setting
    if isinstance(value, bool) or not isinstance(value, expected):
        wanted = " or ".join(t.__name__ for t in expected)
        raise ValueError(f"Generation setting '{name}' in '{cfg_path}' must be {wanted}, got {value!r}")
    if expected is _NUMBER:
        return float(value)
    return value


def _read_overrides(cfg_path: Path) -> Dict[str, Any]:
    if not cfg_path.exists():
        raise FileNotFoundError(f"Generation settings file not found at '{cfg_path}'.")

    with cfg_path.open("r", encoding="utf-8") as f:
        data = commentjson.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Generation settings in '{cfg_path}' must be a JSON object")

    known = {f.name for f in fields(GenerationSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown generation setting(s) {unknown} in '{cfg_path}'")
    return {name: _check_value(name, value, cfg_path) for name, value in data.items()}


def load_generation_settings(path: str | os.PathLike | None = None) -> GenerationSettings:
    """
    Defaults merged with the overrides of a JSON-with-comments file.
    The file path comes from the argument or RECONSTRUCTOR_SETTINGS_PATH; with neither, defaults are returned.
    """
    cfg = path or SETTINGS_PATH
    settings = GenerationSettings()
    if not cfg:
        return settings

    overrides = _read_overrides(Path(cfg))
    logger.info("Loaded generation settings overrides from %s: %s", cfg, sorted(overrides))
    return replace(settings, **overrides)
