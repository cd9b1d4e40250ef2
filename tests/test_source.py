"""
YamlConfigSource 평탄화 및 파싱 테스트
"""

import json
import os
from unittest.mock import patch

import pytest

from hotprops import ParseError, YamlConfigSource
from tests.helpers import write_text, write_yaml


class TestYamlConfigSource:
    """YAML 로드 테스트"""

    def test_flatten_nested(self, tmp_path):
        path = tmp_path / "app.yaml"
        write_yaml(
            path,
            {
                "database": {
                    "host": "localhost",
                    "port": 5432,
                    "pool": {"min_size": 5, "max_size": 20},
                },
                "app": {"debug": True, "ratio": 0.5, "name": None},
            },
        )

        props = YamlConfigSource().load(str(path))

        assert props == {
            "database.host": "localhost",
            "database.port": 5432,
            "database.pool.min_size": 5,
            "database.pool.max_size": 20,
            "app.debug": True,
            "app.ratio": 0.5,
            "app.name": None,
        }

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        write_text(path, "")

        assert YamlConfigSource().load(str(path)) == {}

    def test_json_file(self, tmp_path):
        """JSON도 같은 로더로 처리"""
        path = tmp_path / "app.json"
        write_text(path, json.dumps({"cache": {"enabled": True, "ttl": 3600}}))

        props = YamlConfigSource().load(str(path))

        assert props == {"cache.enabled": True, "cache.ttl": 3600}

    def test_non_string_keys(self, tmp_path):
        path = tmp_path / "keys.yaml"
        write_text(path, "ports:\n  8080: web\n  true: flag\n")

        props = YamlConfigSource().load(str(path))

        assert props == {"ports.8080": "web", "ports.True": "flag"}

    def test_dates_become_iso_strings(self, tmp_path):
        path = tmp_path / "dates.yaml"
        write_text(path, "release:\n  date: 2024-03-01\n")

        props = YamlConfigSource().load(str(path))

        assert props == {"release.date": "2024-03-01"}

    def test_env_var_substitution(self, tmp_path):
        """${VAR} / $VAR 치환, 미설정 변수는 그대로"""
        path = tmp_path / "env.yaml"
        write_yaml(
            path,
            {
                "db": {
                    "url": "postgres://${DB_HOST}:5432",
                    "password": "$DB_PASSWORD",
                    "unset": "${HOTPROPS_TEST_UNSET}",
                }
            },
        )

        with patch.dict(os.environ, {"DB_HOST": "db.internal", "DB_PASSWORD": "secret123"}):
            os.environ.pop("HOTPROPS_TEST_UNSET", None)
            props = YamlConfigSource().load(str(path))

        assert props["db.url"] == "postgres://db.internal:5432"
        assert props["db.password"] == "secret123"
        assert props["db.unset"] == "${HOTPROPS_TEST_UNSET}"

    def test_env_var_substitution_disabled(self, tmp_path):
        path = tmp_path / "env.yaml"
        write_yaml(path, {"db": {"password": "$DB_PASSWORD"}})

        with patch.dict(os.environ, {"DB_PASSWORD": "secret123"}):
            props = YamlConfigSource(substitute_env=False).load(str(path))

        assert props["db.password"] == "$DB_PASSWORD"


class TestYamlConfigSourceErrors:
    """ParseError 테스트"""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ParseError) as exc_info:
            YamlConfigSource().load(str(tmp_path / "missing.yaml"))

        assert exc_info.value.path.endswith("missing.yaml")
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        write_text(path, "a: {b: 2\n")

        with pytest.raises(ParseError):
            YamlConfigSource().load(str(path))

    def test_top_level_not_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        write_text(path, "- 1\n- 2\n")

        with pytest.raises(ParseError):
            YamlConfigSource().load(str(path))

    def test_list_value_rejected(self, tmp_path):
        path = tmp_path / "list_value.yaml"
        write_yaml(path, {"servers": ["a", "b"]})

        with pytest.raises(ParseError):
            YamlConfigSource().load(str(path))

    def test_int_out_of_64_bit_range(self, tmp_path):
        path = tmp_path / "big.yaml"
        write_text(path, f"big: {2**63}\n")

        with pytest.raises(ParseError):
            YamlConfigSource().load(str(path))

    @pytest.mark.parametrize(
        "text",
        ["a:\n  b: 1\n'a.b': 2\n", "'a.b': 2\na:\n  b: 1\n"],
    )
    def test_flattened_key_collision(self, tmp_path, text):
        """중첩 경로와 점 포함 키가 겹치면 실패 (순서 무관)"""
        path = tmp_path / "collision.yaml"
        write_text(path, text)

        with pytest.raises(ParseError) as exc_info:
            YamlConfigSource().load(str(path))

        assert "a.b" in str(exc_info.value)

    def test_empty_key(self, tmp_path):
        path = tmp_path / "empty_key.yaml"
        write_text(path, 'a:\n  "": 1\n')

        with pytest.raises(ParseError):
            YamlConfigSource().load(str(path))
