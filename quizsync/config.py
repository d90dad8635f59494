from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

BUILTIN_SOURCE_URL = "http://tednewardsandbox.site44.com/questions.json"


def _default_data_dir() -> str:
    return os.getenv("QUIZSYNC_HOME", str(Path.home() / ".quizsync"))


@dataclass
class LoggingConfig:
    level: str = field(default_factory=lambda: os.getenv("QUIZSYNC_LOG_LEVEL", "INFO"))
    log_dir: Optional[str] = None
    filename: str = "quizsync.log"
    structured: bool = False

    def file_path(self) -> Optional[Path]:
        if not self.log_dir:
            return None
        return Path(self.log_dir) / self.filename


@dataclass
class StorageConfig:
    data_dir: str = field(default_factory=_default_data_dir)
    cache_filename: str = "catalog.json"
    settings_filename: str = "settings.yaml"

    def cache_path(self) -> Path:
        return Path(self.data_dir).expanduser() / self.cache_filename

    def settings_path(self) -> Path:
        return Path(self.data_dir).expanduser() / self.settings_filename


@dataclass
class SourceConfig:
    default_url: str = field(
        default_factory=lambda: os.getenv("QUIZSYNC_SOURCE_URL") or BUILTIN_SOURCE_URL
    )
    request_timeout: Optional[float] = None  # None: transport default


@dataclass
class ConnectivityConfig:
    """Reachability probing. The probe is a TCP connect to host:port."""
    enabled: bool = True
    probe_host: Optional[str] = None  # None: host of the configured source URL
    probe_port: Optional[int] = None  # None: port implied by the URL scheme
    probe_timeout: float = 3.0
    poll_interval: float = 5.0


@dataclass
class AppConfig:
    logging: LoggingConfig = None  # type: ignore[assignment]
    storage: StorageConfig = None  # type: ignore[assignment]
    source: SourceConfig = None  # type: ignore[assignment]
    connectivity: ConnectivityConfig = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.logging is None:
            self.logging = LoggingConfig()
        if self.storage is None:
            self.storage = StorageConfig()
        if self.source is None:
            self.source = SourceConfig()
        if self.connectivity is None:
            self.connectivity = ConnectivityConfig()

    @staticmethod
    def from_json(path: str | Path) -> "AppConfig":
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
        return AppConfig(
            logging=LoggingConfig(**payload.get("logging", {})),
            storage=StorageConfig(**payload.get("storage", {})),
            source=SourceConfig(**payload.get("source", {})),
            connectivity=ConnectivityConfig(**payload.get("connectivity", {})),
        )

    def to_json(self, path: str | Path) -> None:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        with open(p, "w", encoding="utf-8") as f:
            json.dump({
                "logging": asdict(self.logging),
                "storage": asdict(self.storage),
                "source": asdict(self.source),
                "connectivity": asdict(self.connectivity),
            }, f, indent=2, ensure_ascii=False)


def default_app_config() -> AppConfig:
    return AppConfig(
        logging=LoggingConfig(),
        storage=StorageConfig(),
        source=SourceConfig(),
        connectivity=ConnectivityConfig(),
    )
