import base64
import sqlite3
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import NullPool

from backend.api.main import create_app
from backend.events.gateway import EventGateway, create_event_engine
from backend.internal_core.config import AdminConfig
from backend.notify.webhooks import WebhookNotifier

ADMIN_PASSWORD = "s3cret-pass"
ADMIN_TOKEN = "tok-123"
UPDATE_HOOK = "http://hooks.test/update"
DELETE_HOOK = "http://hooks.test/delete"

EVENTS_DDL = """
CREATE TABLE hobbit_quiz_events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    player_id TEXT NOT NULL,
    hobbit_name TEXT,
    event_type TEXT,
    event_timestamp TIMESTAMP,
    created_at TIMESTAMP
)
"""

SEED_ROWS = [
    ("p1", "Frodo", "quiz_started", "2024-05-01T10:00:00", "2024-05-01T10:00:01"),
    ("p2", "Samwise", "quiz_started", "2024-05-01T11:00:00", "2024-05-01T11:00:01"),
    ("p1", "Frodo", "quiz_completed", "2024-05-01T10:05:00", "2024-05-01T10:05:01"),
    ("p3", "Merry", "quiz_completed", "2024-05-02T09:30:00", "2024-05-02T09:30:01"),
]


class RecordingWebhook:
    """httpx.MockTransport handler that records every outbound request."""

    def __init__(self, status_code: int = 200, error: Exception | None = None):
        self.status_code = status_code
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json={"received": True})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "events.db"
    conn = sqlite3.connect(path)
    try:
        conn.execute(EVENTS_DDL)
        conn.executemany(
            "INSERT INTO hobbit_quiz_events "
            "(player_id, hobbit_name, event_type, event_timestamp, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            SEED_ROWS,
        )
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def read_rows(db_path: Path):
    def _read() -> dict[int, dict]:
        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row
        try:
            rows = conn.execute("SELECT * FROM hobbit_quiz_events").fetchall()
        finally:
            conn.close()
        return {row["id"]: dict(row) for row in rows}

    return _read


@pytest.fixture
def gateway(db_path: Path) -> EventGateway:
    # NullPool keeps connections from outliving the event loop that opened them.
    engine = create_event_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return EventGateway(engine)


@pytest.fixture
def admin_config() -> AdminConfig:
    return AdminConfig(
        admin_password=ADMIN_PASSWORD,
        admin_token=ADMIN_TOKEN,
        database_url="sqlite+aiosqlite:///unused.db",
        update_webhook_url=UPDATE_HOOK,
        delete_webhook_url=DELETE_HOOK,
    )


@pytest.fixture
def webhook() -> RecordingWebhook:
    return RecordingWebhook()


@pytest.fixture
def basic_auth():
    def _header(username: str = "admin", password: str = ADMIN_PASSWORD) -> dict[str, str]:
        raw = f"{username}:{password}".encode("utf-8")
        return {"Authorization": "Basic " + base64.b64encode(raw).decode("ascii")}

    return _header


@pytest.fixture
def admin_headers(basic_auth) -> dict[str, str]:
    return basic_auth()


@pytest.fixture
def make_client(gateway: EventGateway, webhook: RecordingWebhook, admin_config: AdminConfig):
    def _make(config: AdminConfig | None = None, hook: RecordingWebhook | None = None) -> TestClient:
        resolved = config if config is not None else admin_config
        notifier = WebhookNotifier(
            update_url=resolved.update_webhook_url,
            delete_url=resolved.delete_webhook_url,
            transport=(hook or webhook).transport(),
        )
        return TestClient(create_app(resolved, gateway=gateway, notifier=notifier))

    return _make


@pytest.fixture
def client(make_client):
    with make_client() as test_client:
        yield test_client
