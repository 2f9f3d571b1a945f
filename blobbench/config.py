"""Configuration management using TOML."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

try:
    import tomllib
except ImportError:
    import tomli as tomllib

DEFAULT_SEED = 23
DEFAULT_BLOB_LENGTH = (1 << 24) + 2123


@dataclass
class ProviderConfig:
    """Configuration for a single storage provider."""

    name: str
    type: Literal["s3", "local", "memory"]
    enabled: bool = True

    # S3-specific fields
    endpoint: str | None = None
    access_key: str | None = None
    secret_key: str | None = None
    bucket: str | None = None
    region: str | None = None
    prefix: str = ""

    # Local-specific fields
    base_path: str | None = None

    def validate(self) -> None:
        """Validate provider configuration."""
        if self.type == "s3":
            if not all([self.endpoint, self.access_key, self.secret_key, self.bucket]):
                raise ValueError(
                    f"S3 provider '{self.name}' missing required fields: "
                    f"endpoint, access_key, secret_key, bucket"
                )
        elif self.type == "local":
            if not self.base_path:
                raise ValueError(f"Local provider '{self.name}' missing required field: base_path")
        elif self.type != "memory":
            raise ValueError(f"Provider '{self.name}' has unknown type: {self.type}")


@dataclass
class BenchmarkConfig:
    """Global benchmark configuration."""

    seed: int = DEFAULT_SEED
    blob_length: int = DEFAULT_BLOB_LENGTH
    iterations: int = 10
    runs_per_test: int = 1
    max_retries: int = 5
    timeout_seconds: int = 300
    database: str = "benchmark_results.db"

    def validate(self) -> None:
        if self.blob_length <= 0:
            raise ValueError("blob_length must be > 0")
        if self.iterations <= 0:
            raise ValueError("iterations must be > 0")


@dataclass
class Config:
    """Complete configuration."""

    benchmark: BenchmarkConfig = field(default_factory=BenchmarkConfig)
    providers: list[ProviderConfig] = field(default_factory=list)

    @classmethod
    def from_file(cls, config_path: str | Path = "config.toml") -> "Config":
        """Load configuration from TOML file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {config_path}\n"
                f"Copy config.toml.example to config.toml and edit it with your credentials."
            )

        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Build configuration from parsed TOML data."""
        defaults = BenchmarkConfig()
        benchmark_data = data.get("benchmark", {})
        benchmark_config = BenchmarkConfig(
            seed=benchmark_data.get("seed", defaults.seed),
            blob_length=benchmark_data.get("blob_length", defaults.blob_length),
            iterations=benchmark_data.get("iterations", defaults.iterations),
            runs_per_test=benchmark_data.get("runs_per_test", defaults.runs_per_test),
            max_retries=benchmark_data.get("max_retries", defaults.max_retries),
            timeout_seconds=benchmark_data.get("timeout_seconds", defaults.timeout_seconds),
            database=benchmark_data.get("database", defaults.database),
        )

        # S3 credentials may be kept out of the file
        providers = []
        for provider_data in data.get("providers", []):
            provider = ProviderConfig(
                name=provider_data["name"],
                type=provider_data["type"],
                enabled=provider_data.get("enabled", True),
                endpoint=provider_data.get("endpoint"),
                access_key=provider_data.get("access_key") or os.environ.get("S3_ACCESS_KEY"),
                secret_key=provider_data.get("secret_key") or os.environ.get("S3_SECRET_KEY"),
                bucket=provider_data.get("bucket"),
                region=provider_data.get("region"),
                prefix=provider_data.get("prefix", ""),
                base_path=provider_data.get("base_path"),
            )
            providers.append(provider)

        return cls(benchmark=benchmark_config, providers=providers)

    def get_enabled_providers(self) -> list[ProviderConfig]:
        """Get list of enabled providers."""
        return [p for p in self.providers if p.enabled]

    def get_provider(self, name: str) -> ProviderConfig | None:
        """Get provider by name."""
        for provider in self.providers:
            if provider.name == name:
                return provider
        return None

    def validate(self) -> None:
        """Validate settings and all enabled providers."""
        self.benchmark.validate()
        for provider in self.get_enabled_providers():
            provider.validate()
