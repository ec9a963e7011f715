import json

from acopio.config import load_settings


def test_env_data_dir_and_persisted_options(tmp_path, monkeypatch):
    (tmp_path / "settings.json").write_text(
        json.dumps({"currency": "USD", "low_stock_unit": "sacks", "ai_enabled": True, "ollama_model": "llama3"}),
        encoding="utf-8",
    )
    monkeypatch.setenv("ACOPIO_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("ACOPIO_OLLAMA_MODEL", "mistral")
    monkeypatch.delenv("ACOPIO_OLLAMA_URL", raising=False)

    settings = load_settings()

    assert settings.data_dir == tmp_path.resolve()
    assert settings.db_path.name == "app.db"
    assert settings.currency == "USD"
    assert settings.low_stock_unit == "sacks"
    assert settings.ai_enabled is True
    assert settings.ollama_model == "mistral"
    assert settings.special_cycle_provider == "lucio"


def test_session_dir_wins_and_bad_file_is_ignored(tmp_path, monkeypatch):
    session_dir = tmp_path / "session"
    session_dir.mkdir()
    (session_dir / "settings.json").write_text("{broken", encoding="utf-8")
    monkeypatch.setenv("ACOPIO_DATA_DIR", str(tmp_path / "env"))

    settings = load_settings(str(session_dir))

    assert settings.data_dir == session_dir.resolve()
    assert settings.kg_per_sack == 25.0
