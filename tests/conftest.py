# tests/conftest.py
import sys
from datetime import datetime
from pathlib import Path

# Make the repo root importable (common/, services/, constants/ ...)
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import pytest

from tests.helpers import NOW


@pytest.fixture
def now() -> datetime:
    return NOW
