from __future__ import annotations

import pytest

from accesspoint_sync.config import (
    EMBEDDING_DIMENSION,
    OPENAI_EMBED_MODEL,
    PINECONE_INDEX_NAME,
    AppConfig,
    OpenAIConfig,
    PineconeConfig,
    PostgresConfig,
    SyncConfig,
    load_config,
    validate_config,
)

_ENV_VARS = (
    "DATABASE_URL",
    "POSTGRES_URL",
    "POSTGRES_ECHO",
    "POSTGRES_POOL_SIZE",
    "POSTGRES_MAX_OVERFLOW",
    "PINECONE_API_KEY",
    "PINECONE_INDEX_NAME",
    "PINECONE_NAMESPACE",
    "OPENAI_API_KEY",
    "OPENAI_EMBED_MODEL",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    for name in _ENV_VARS:
        # setenv first so values loaded from a .env file are undone after the test
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


def test_defaults_without_environment(clean_env, tmp_path):
    cfg = load_config(str(tmp_path / "missing.env"))
    assert cfg.postgres.url == ""
    assert cfg.pinecone.index_name == PINECONE_INDEX_NAME
    assert cfg.pinecone.namespace is None
    assert cfg.openai.embedding_model == OPENAI_EMBED_MODEL
    assert cfg.sync.embedding_dimension == EMBEDDING_DIMENSION
    assert cfg.sync.upsert_batch_size == 100


def test_reads_environment(clean_env, tmp_path):
    clean_env.setenv("POSTGRES_URL", "postgresql://u:p@db/ap")
    clean_env.setenv("POSTGRES_ECHO", "true")
    clean_env.setenv("POSTGRES_POOL_SIZE", "2")
    clean_env.setenv("PINECONE_API_KEY", "pk")
    clean_env.setenv("PINECONE_NAMESPACE", "staging")
    clean_env.setenv("OPENAI_API_KEY", "ok")

    cfg = load_config(str(tmp_path / "missing.env"))
    assert cfg.postgres.url == "postgresql://u:p@db/ap"
    assert cfg.postgres.echo is True
    assert cfg.postgres.pool_size == 2
    assert cfg.pinecone.api_key == "pk"
    assert cfg.pinecone.namespace == "staging"
    assert cfg.openai.api_key == "ok"


def test_database_url_wins_over_postgres_url(clean_env, tmp_path):
    clean_env.setenv("DATABASE_URL", "postgresql://primary/ap")
    clean_env.setenv("POSTGRES_URL", "postgresql://secondary/ap")
    assert load_config(str(tmp_path / "missing.env")).postgres.url == "postgresql://primary/ap"


def test_dotenv_file_is_loaded(clean_env, tmp_path):
    env_file = tmp_path / "test.env"
    env_file.write_text("DATABASE_URL=sqlite:///from-dotenv.db\nPINECONE_INDEX_NAME=custom-index\n")
    cfg = load_config(str(env_file))
    assert cfg.postgres.url == "sqlite:///from-dotenv.db"
    assert cfg.pinecone.index_name == "custom-index"


def test_validate_config_reports_missing_credentials():
    cfg = AppConfig(
        postgres=PostgresConfig(),
        pinecone=PineconeConfig(),
        openai=OpenAIConfig(),
        sync=SyncConfig(),
    )
    issues = validate_config(cfg)
    assert any("DATABASE_URL" in i for i in issues)
    assert any("PINECONE_API_KEY" in i for i in issues)
    # The embedding provider key is optional.
    assert not any("OPENAI" in i for i in issues)


def test_validate_config_accepts_complete_config():
    cfg = AppConfig(
        postgres=PostgresConfig(url="postgresql://db/ap"),
        pinecone=PineconeConfig(api_key="pk"),
        openai=OpenAIConfig(),
        sync=SyncConfig(),
    )
    assert validate_config(cfg) == []


def test_config_is_immutable():
    cfg = PineconeConfig(api_key="pk")
    with pytest.raises(AttributeError):
        cfg.api_key = "other"  # type: ignore[misc]
