"""
Pytest 설정 및 공통 Fixture
"""

import tempfile
from pathlib import Path

import pytest

from tests.helpers import BASE_CONFIG, CountingSource, write_yaml


@pytest.fixture
def config_path():
    """기본 설정 파일 ({a.b: 1, a.c: "x"})"""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "app.yaml"
        write_yaml(path, BASE_CONFIG)
        yield str(path)


@pytest.fixture
def counting_source() -> CountingSource:
    return CountingSource()
