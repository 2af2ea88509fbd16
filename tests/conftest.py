from datetime import datetime

import pytest

from core import storage
from core.models import StatusKind, StatusSample


def sample(status: str, ts: str) -> StatusSample:
    return StatusSample(StatusKind(status), datetime.fromisoformat(ts))


@pytest.fixture
def db(tmp_path):
    storage.init(str(tmp_path / "uptime.db"))
    return tmp_path / "uptime.db"
