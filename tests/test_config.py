"""Tests for TOML configuration loading."""

from dataclasses import fields
from pathlib import Path

import pytest

from blobbench.config import DEFAULT_BLOB_LENGTH, BenchmarkConfig, Config, ProviderConfig

CONFIG = """
[benchmark]
seed = 7
blob_length = 4096
iterations = 2

[[providers]]
name = "mem"
type = "memory"

[[providers]]
name = "disk"
type = "local"
base_path = "/tmp/blobs"
enabled = false

[[providers]]
name = "minio"
type = "s3"
endpoint = "http://localhost:9000"
bucket = "bench"
"""


def write_config(tmp_path: Path, text: str = CONFIG) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(text)
    return path


def test_from_file(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("S3_ACCESS_KEY", raising=False)
    monkeypatch.delenv("S3_SECRET_KEY", raising=False)
    config = Config.from_file(write_config(tmp_path))

    assert config.benchmark.seed == 7
    assert config.benchmark.blob_length == 4096
    assert config.benchmark.iterations == 2
    assert config.benchmark.runs_per_test == 1
    assert [p.name for p in config.providers] == ["mem", "disk", "minio"]
    assert [p.name for p in config.get_enabled_providers()] == ["mem", "minio"]
    assert config.get_provider("disk").base_path == "/tmp/blobs"
    assert config.get_provider("missing") is None


def test_defaults() -> None:
    config = Config.from_dict({})
    assert config.benchmark.seed == 23
    assert config.benchmark.blob_length == DEFAULT_BLOB_LENGTH == 16777339
    assert config.providers == []


def test_benchmark_settings_have_no_cleanup_switch() -> None:
    names = {f.name for f in fields(BenchmarkConfig)}
    assert "cleanup_after" not in names
    config = Config.from_dict({"benchmark": {"cleanup_after": False}})
    assert not hasattr(config.benchmark, "cleanup_after")


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        Config.from_file(tmp_path / "nope.toml")


def test_s3_credentials_from_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("S3_ACCESS_KEY", "env-key")
    monkeypatch.setenv("S3_SECRET_KEY", "env-secret")
    config = Config.from_file(write_config(tmp_path))
    provider = config.get_provider("minio")
    assert provider.access_key == "env-key"
    assert provider.secret_key == "env-secret"
    config.validate()


def test_s3_validation(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("S3_ACCESS_KEY", raising=False)
    monkeypatch.delenv("S3_SECRET_KEY", raising=False)
    config = Config.from_file(write_config(tmp_path))
    with pytest.raises(ValueError, match="missing required fields"):
        config.validate()


@pytest.mark.parametrize(
    "provider",
    [
        ProviderConfig(name="disk", type="local"),
        ProviderConfig(name="odd", type="ftp"),
    ],
)
def test_invalid_providers(provider: ProviderConfig) -> None:
    with pytest.raises(ValueError):
        provider.validate()


def test_invalid_benchmark_settings() -> None:
    config = Config.from_dict({"benchmark": {"iterations": 0}})
    with pytest.raises(ValueError):
        config.validate()
