from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.bundle_builder import BundleBuilder
from yuibuild.models import Bundle


@pytest.fixture
def bundle_builder(tmp_path: Path) -> BundleBuilder:
    """Provide a reusable bundle builder rooted at the pytest tmp_path."""
    return BundleBuilder(tmp_path)


@pytest.fixture
def bundle() -> Bundle:
    """An in-memory bundle rooted at /app with its build output in /app/build."""
    return Bundle(name="app", path="/app", build_directory="/app/build")
