import io
import os
import tempfile

os.environ.setdefault("DATABASE_DSN", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="asset-checker-uploads-"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

import asset_checker.models  # noqa: E402,F401
from asset_checker.database.connection import build_engine, get_session  # noqa: E402
from asset_checker.services.image_storage import ImageStorage, get_image_storage  # noqa: E402


def make_png(color=(200, 30, 30), size=(32, 32)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def storage(tmp_path):
    return ImageStorage(tmp_path / "uploads", "/uploads")


@pytest.fixture
def client(engine, storage):
    from main import create_app

    app = create_app()

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_image_storage] = lambda: storage
    with TestClient(app) as client:
        yield client


@pytest.fixture
def png():
    return make_png
