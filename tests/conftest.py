"""
Pytest configuration and fixtures for Depot tests.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

# Check for pytest-asyncio
try:
    import pytest_asyncio
    HAS_PYTEST_ASYNCIO = True
except ImportError:
    HAS_PYTEST_ASYNCIO = False

from fastapi.testclient import TestClient

from depot.FileSystemGate import DataRoot, FileSystemGate
from dock.run import create_app


def pytest_collection_modifyitems(config, items):
    """Skip async tests if pytest-asyncio is not installed."""
    if HAS_PYTEST_ASYNCIO:
        return

    import asyncio
    skip_asyncio = pytest.mark.skip(
        reason="pytest-asyncio not installed - async tests require pytest-asyncio"
    )
    for item in items:
        if asyncio.iscoroutinefunction(item.function):
            item.add_marker(skip_asyncio)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    # Cleanup
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def data_dir(temp_dir: Path) -> Path:
    """The directory served by the gate."""
    data = temp_dir / "data"
    data.mkdir()
    return data


@pytest.fixture
def data_root(data_dir: Path) -> DataRoot:
    """DataRoot with a tiny chunk size so transfers span many chunks."""
    return DataRoot(path=str(data_dir), chunk_size=4)


@pytest.fixture
def gate(data_root: DataRoot) -> FileSystemGate:
    return FileSystemGate(data_root)


@pytest.fixture
def sample_tree(data_dir: Path) -> Path:
    """
    Create a sample tree:

        readme.txt
        data.json
        docs/guide.md
        docs/nested/deep.txt
        docs/nested/empty/
    """
    (data_dir / "readme.txt").write_text("Hello World")
    (data_dir / "data.json").write_text('{"key": "value"}')

    docs = data_dir / "docs"
    (docs / "nested" / "empty").mkdir(parents=True)
    (docs / "guide.md").write_text("# Guide")
    (docs / "nested" / "deep.txt").write_bytes(b"\x00\x01binary\xff")

    return data_dir


@pytest.fixture
def client(gate: FileSystemGate) -> Generator[TestClient, None, None]:
    """HTTP client for the app around the test gate."""
    with TestClient(create_app(gate, assets_dir=None)) as test_client:
        yield test_client


def tree_snapshot(root: Path) -> dict:
    """Map relative path -> file bytes (None for directories)."""
    snapshot = {}
    for path in sorted(root.rglob("*")):
        rel = path.relative_to(root).as_posix()
        snapshot[rel] = None if path.is_dir() else path.read_bytes()
    return snapshot
