"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides test database, client, catalog and synthetic barcode frame
fixtures.

==============================================================================
"""

import base64
import os
from pathlib import Path
from typing import Callable, Generator, List, Sequence

import cv2
import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Must be set before the settings singleton is first built
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("PRODUCTS_FILE", str(PROJECT_ROOT / "data" / "products.json"))

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker, Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from barcode_scanner.main import app  # noqa: E402
from barcode_scanner.db.database import Base, get_db  # noqa: E402
from barcode_scanner.catalog.catalog import init_catalog  # noqa: E402


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

# In-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database override."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================================================
# CATALOG FIXTURES
# ============================================================================

@pytest.fixture
def products_file() -> Path:
    return PROJECT_ROOT / "data" / "products.json"


@pytest.fixture
def catalog(products_file: Path):
    """The sample catalog, installed as the global instance."""
    return init_catalog(products_file)


# ============================================================================
# FRAME FIXTURES
# ============================================================================

def build_frame(runs: Sequence[int], height: int = 5, dark: int = 0, light: int = 255) -> np.ndarray:
    """BGR frame whose every row is the given run sequence, dark first."""
    values: List[int] = []
    color = dark
    for width in runs:
        values.extend([color] * width)
        color = light if color == dark else dark

    line = np.array(values, dtype=np.uint8)
    gray = np.tile(line, (height, 1))
    return np.repeat(gray[:, :, None], 3, axis=2)


def runs_for_digits(digits: str, unit: int = 2) -> List[int]:
    """
    Run sequence that decodes to the given digits.

    Each digit d is four runs [u, u, u, u * (1 + d)]. A trailing quiet
    zone run closes the last group and is itself never counted.
    """
    runs: List[int] = []
    for ch in digits:
        runs.extend([unit, unit, unit, unit * (1 + int(ch))])
    runs.append(unit * 10)
    return runs


@pytest.fixture
def frame_from_runs() -> Callable[..., np.ndarray]:
    return build_frame


@pytest.fixture
def barcode_frame() -> Callable[[str], np.ndarray]:
    """Factory: digits → frame that decodes to those digits."""
    def factory(digits: str, unit: int = 2) -> np.ndarray:
        return build_frame(runs_for_digits(digits, unit))
    return factory


@pytest.fixture
def blank_frame() -> np.ndarray:
    """Frame with no bars at all."""
    return np.full((5, 120, 3), 255, dtype=np.uint8)


@pytest.fixture
def encoded_frame() -> Callable[[str], str]:
    """Factory: digits → base64 PNG as sent over the scanner WebSocket."""
    def factory(digits: str) -> str:
        ok, buffer = cv2.imencode(".png", build_frame(runs_for_digits(digits)))
        assert ok
        return base64.b64encode(buffer.tobytes()).decode("ascii")
    return factory
