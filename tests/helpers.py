"""Shared test scaffolding: the app wired to an in-memory SQLite database."""

import unittest

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from smartlink.core.database import get_db
from smartlink.core.security import create_access_token
from smartlink.main import app
from smartlink.models import Base, Site


def make_session_factory() -> sessionmaker:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def bearer(role: str = "admin", sub: int = 1) -> dict[str, str]:
    """Authorization header carrying a freshly signed token."""
    return {"Authorization": f"Bearer {create_access_token(sub=sub, role=role)}"}


def site_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "title": "Google Search",
        "site_url": "https://google.com",
        "category": "Technology",
        "description": "x",
    }
    payload.update(overrides)
    return payload


class ApiTestCase(unittest.TestCase):
    """TestClient against the real app with get_db overridden by a fresh SQLite database."""

    def setUp(self) -> None:
        self.SessionLocal = make_session_factory()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def count_sites(self) -> int:
        with self.SessionLocal() as db:
            return db.query(Site).count()

    def create_site(self, **overrides: object) -> dict:
        resp = self.client.post("/api/sites", json=site_payload(**overrides), headers=bearer())
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()
