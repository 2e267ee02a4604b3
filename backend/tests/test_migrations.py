import io
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text

from backend.app.core.config import get_settings

ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def alembic_config(tmp_path, monkeypatch):
    """Alembic pointed at a throwaway SQLite file through the app settings."""
    url = f"sqlite:///{tmp_path / 'lagerwerk.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    get_settings.cache_clear()

    # no ini file: env.py leaves the test run's logging alone
    cfg = Config(output_buffer=io.StringIO())
    cfg.set_main_option("script_location", str(ROOT / "backend" / "alembic"))
    try:
        yield cfg, url
    finally:
        get_settings.cache_clear()


def test_upgrade_creates_schema_and_number_sequences(alembic_config):
    cfg, url = alembic_config

    command.upgrade(cfg, "head")

    engine = create_engine(url)
    try:
        tables = set(inspect(engine).get_table_names())
        assert {"articles", "orders", "order_items", "number_sequences"} <= tables
        with engine.connect() as conn:
            rows = dict(conn.execute(text("SELECT name, value FROM number_sequences")).all())
        assert rows == {"ART": 0, "BES": 0}
    finally:
        engine.dispose()


def test_offline_upgrade_renders_sql(alembic_config):
    cfg, _ = alembic_config

    command.upgrade(cfg, "head", sql=True)

    sql = cfg.output_buffer.getvalue()
    assert "CREATE TABLE number_sequences" in sql
    assert "INSERT INTO number_sequences" in sql
