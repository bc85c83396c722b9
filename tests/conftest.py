import asyncio
import os
import tempfile
from types import SimpleNamespace

import pytest

# Settings are read at import time, so the environment must be ready first
_TMP_DIR = tempfile.mkdtemp(prefix="ambient-frames-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "development"
for _name in ("B2_APPLICATION_KEY_ID", "B2_APPLICATION_KEY", "B2_BUCKET", "B2_S3_ENDPOINT", "B2_PUBLIC_BASE_URL"):
    os.environ[_name] = ""

from fastapi.testclient import TestClient  # noqa: E402

from ambient_frames.database import Base, engine, AsyncSessionLocal  # noqa: E402
from ambient_frames.main import app  # noqa: E402
from ambient_frames.models import Admin, generate_id, utcnow  # noqa: E402
from ambient_frames.services.document_store import (  # noqa: E402
    JsonImageConfigStore,
    JsonListStore,
    get_image_config_store,
    get_gallery_store,
    get_projects_store,
)
from ambient_frames.utils.auth import hash_password  # noqa: E402

ADMIN_USERNAME = "studio-admin"
ADMIN_PASSWORD = "correct horse battery"


async def _reset_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _create_admin(username, password):
    async with AsyncSessionLocal() as session:
        session.add(Admin(
            id=generate_id(),
            username=username,
            password_hash=hash_password(password),
            created_at=utcnow(),
        ))
        await session.commit()


@pytest.fixture()
def stores(tmp_path):
    return SimpleNamespace(
        images=JsonImageConfigStore(tmp_path / "cloudinary_images.json"),
        gallery=JsonListStore(tmp_path / "gallery.json"),
        projects=JsonListStore(tmp_path / "projects.json"),
        path=tmp_path,
    )


@pytest.fixture()
def client(stores):
    asyncio.run(_reset_schema())
    app.dependency_overrides[get_image_config_store] = lambda: stores.images
    app.dependency_overrides[get_gallery_store] = lambda: stores.gallery
    app.dependency_overrides[get_projects_store] = lambda: stores.projects

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def admin(client):
    asyncio.run(_create_admin(ADMIN_USERNAME, ADMIN_PASSWORD))
    return SimpleNamespace(username=ADMIN_USERNAME, password=ADMIN_PASSWORD)


@pytest.fixture()
def admin_client(client, admin):
    r = client.post('/api/admin/auth', json={'username': admin.username, 'password': admin.password})
    assert r.status_code == 200
    return client
