from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

import streamlit as st

CONFIG_FILE_NAME = "settings.json"
ENV_DATA_DIR = "ACOPIO_DATA_DIR"
ENV_OLLAMA_URL = "ACOPIO_OLLAMA_URL"
ENV_OLLAMA_MODEL = "ACOPIO_OLLAMA_MODEL"
ENV_LOG_LEVEL = "ACOPIO_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    currency: str = "S/."
    kg_per_sack: float = 25.0
    low_stock_threshold: float = 5.0
    low_stock_unit: str = "kg"  # "kg" on the dashboard, "sacks" in reports
    special_cycle_provider: str = "lucio"
    ai_enabled: bool = False
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "gemma2"
    ollama_timeout: int = 120
    log_level: str = "INFO"


def _default_data_dir() -> Path:
    return Path.home() / ".acopiapp"


def _load_persisted_settings(data_dir: Path) -> dict:
    cfg = data_dir / CONFIG_FILE_NAME
    if cfg.exists():
        try:
            payload = json.loads(cfg.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable %s: %s", cfg, exc)
            return {}
        return payload if isinstance(payload, dict) else {}
    return {}


def persist_data_dir(data_dir_str: str) -> None:
    data_dir = Path(data_dir_str).expanduser().resolve()
    data_dir.mkdir(parents=True, exist_ok=True)

    # Keep the other persisted options when only the directory moves
    cfg = data_dir / CONFIG_FILE_NAME
    payload = _load_persisted_settings(data_dir)
    payload["data_dir"] = str(data_dir)
    cfg.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    st.session_state["acopio_data_dir"] = str(data_dir)


def _resolve_data_dir(session_dir: str | None) -> tuple[Path, dict]:
    # Priority order:
    # 1) Session state (set via Data Management page)
    # 2) Environment variable
    # 3) Persisted settings in default folder
    # 4) Default folder
    if session_dir:
        data_dir = Path(session_dir).expanduser().resolve()
    elif os.getenv(ENV_DATA_DIR):
        data_dir = Path(os.getenv(ENV_DATA_DIR, "")).expanduser().resolve()
    else:
        default_dir = _default_data_dir()
        persisted = _load_persisted_settings(default_dir)
        data_dir = Path(persisted.get("data_dir", default_dir)).expanduser().resolve()
    return data_dir, _load_persisted_settings(data_dir)


def load_settings(session_dir: str | None = None) -> Settings:
    data_dir, persisted = _resolve_data_dir(session_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    defaults = Settings(data_dir=data_dir, db_path=data_dir / "app.db")
    return Settings(
        data_dir=data_dir,
        db_path=data_dir / "app.db",
        currency=str(persisted.get("currency", defaults.currency)),
        kg_per_sack=float(persisted.get("kg_per_sack", defaults.kg_per_sack)),
        low_stock_threshold=float(persisted.get("low_stock_threshold", defaults.low_stock_threshold)),
        low_stock_unit=str(persisted.get("low_stock_unit", defaults.low_stock_unit)),
        special_cycle_provider=str(persisted.get("special_cycle_provider", defaults.special_cycle_provider)),
        ai_enabled=bool(persisted.get("ai_enabled", defaults.ai_enabled)),
        ollama_base_url=os.getenv(ENV_OLLAMA_URL) or str(persisted.get("ollama_base_url", defaults.ollama_base_url)),
        ollama_model=os.getenv(ENV_OLLAMA_MODEL) or str(persisted.get("ollama_model", defaults.ollama_model)),
        ollama_timeout=int(persisted.get("ollama_timeout", defaults.ollama_timeout)),
        log_level=os.getenv(ENV_LOG_LEVEL) or str(persisted.get("log_level", defaults.log_level)),
    )


@st.cache_resource
def get_settings() -> Settings:
    settings = load_settings(st.session_state.get("acopio_data_dir"))
    configure_logging(settings.log_level)
    return settings


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    else:
        root.setLevel(level.upper())
