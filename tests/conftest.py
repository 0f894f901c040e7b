from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from demand_matrix.core.config import get_settings
from demand_matrix.main import create_app


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    get_settings.cache_clear()
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
    get_settings.cache_clear()
