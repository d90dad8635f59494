from __future__ import annotations

import json
import queue
import sys
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from quizsync.config import AppConfig, ConnectivityConfig, LoggingConfig, SourceConfig, StorageConfig  # noqa: E402
from quizsync.data.schemas import Catalog, CatalogSource  # noqa: E402
from quizsync.data.wire import parse_catalog  # noqa: E402
from quizsync.sync import SyncListener  # noqa: E402

SOURCE_URL = "http://quiz.example.com/questions.json"


# ====================
# Payload Fixtures
# ====================

@pytest.fixture
def math_payload() -> List[Dict[str, Any]]:
    """Single category payload from the remote source."""
    return [
        {
            "title": "Math",
            "desc": "d",
            "questions": [{"text": "2+2?", "answer": "2", "answers": ["3", "4"]}],
        }
    ]


@pytest.fixture
def science_payload() -> List[Dict[str, Any]]:
    return [
        {
            "title": "Science!",
            "desc": "Because SCIENCE!",
            "questions": [
                {
                    "text": "What is fire?",
                    "answer": "1",
                    "answers": [
                        "One of the four classical elements",
                        "A magical reaction given to us by God",
                        "A band that hasn't yet been discovered",
                        "Fire! Fire! Fire! heh-heh",
                    ],
                }
            ],
        },
        {
            "title": "Marvel Super Heroes",
            "desc": "Avengers, Assemble!",
            "questions": [
                {
                    "text": "Who is Iron Man?",
                    "answer": "1",
                    "answers": ["Tony Stark", "Obadiah Stane", "A rock hit by Megadeth", "Nobody knows"],
                },
                {
                    "text": "Who founded the X-Men?",
                    "answer": "2",
                    "answers": ["Tony Stark", "Professor X", "The X-Institute", "Erik Lensherr"],
                },
            ],
        },
    ]


@pytest.fixture
def math_body(math_payload) -> bytes:
    return json.dumps(math_payload).encode("utf-8")


@pytest.fixture
def science_catalog(science_payload) -> Catalog:
    return parse_catalog(science_payload)


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """AppConfig rooted in a temporary data directory."""
    return AppConfig(
        logging=LoggingConfig(level="DEBUG", log_dir=None),
        storage=StorageConfig(data_dir=str(tmp_path / "quizsync-home")),
        source=SourceConfig(default_url=SOURCE_URL),
        connectivity=ConnectivityConfig(enabled=False),
    )


# ====================
# Test Doubles
# ====================

class FakeFetcher:
    """Stands in for CatalogFetcher; optionally blocks until released."""

    def __init__(self, result: Optional[Catalog] = None, error: Optional[BaseException] = None,
                 block: bool = False):
        self.result = result
        self.error = error
        self.calls: List[str] = []
        self.started = threading.Event()
        self.release = threading.Event()
        if not block:
            self.release.set()

    def fetch_catalog(self, url: str) -> Catalog:
        self.calls.append(url)
        self.started.set()
        self.release.wait(5)
        if self.error is not None:
            raise self.error
        return self.result or ()


class FlagProbe:
    """Probe whose answer is set by the test."""

    def __init__(self, reachable: bool = False):
        self.reachable = reachable

    def __call__(self) -> bool:
        return self.reachable


class RecordingListener(SyncListener):
    def __init__(self):
        self.published: List[tuple] = []
        self.errors: List[BaseException] = []
        self.events: "queue.Queue[tuple]" = queue.Queue()

    def on_catalog_published(self, catalog: Catalog, source: CatalogSource) -> None:
        self.published.append((catalog, source))
        self.events.put(("published", catalog, source))

    def on_sync_error(self, error: BaseException) -> None:
        self.errors.append(error)
        self.events.put(("error", error))

    def next_publish(self, timeout: float = 5.0) -> tuple:
        while True:
            event = self.events.get(timeout=timeout)
            if event[0] == "published":
                return event[1], event[2]


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()
