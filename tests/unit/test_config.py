"""Tests for configuration loading."""

from pathlib import Path

import pytest

from license_bom.config import DEFAULT_LOW_CONFIDENCE_THRESHOLD, Config


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "about.toml"
    path.write_text(content, encoding="utf-8")
    return path


class TestConfigLoad:
    """Test reading configuration files."""

    def test_full_config(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """
accepted = ["MIT", "Apache-2.0", "GPL-2.0-only WITH Classpath-exception-2.0"]
exclude = ["tentris*"]
low-confidence-threshold = 0.75
workers = 4
corpus = "spdx/corpus.json"

[thirdparty]
namespace = "acme"
key = "native-deps"
""",
        )
        config = Config.load(path)

        assert config.accepted == [
            "MIT",
            "Apache-2.0",
            "GPL-2.0-only WITH Classpath-exception-2.0",
        ]
        assert config.exclude == ["tentris*"]
        assert config.low_confidence_threshold == 0.75
        assert config.workers == 4
        assert config.corpus == tmp_path / "spdx" / "corpus.json"
        assert config.thirdparty_namespace == "acme"
        assert config.thirdparty_key == "native-deps"

    def test_defaults(self, tmp_path: Path) -> None:
        config = Config.load(_write(tmp_path, 'accepted = ["MIT"]\n'))

        assert config.exclude == []
        assert config.low_confidence_threshold == DEFAULT_LOW_CONFIDENCE_THRESHOLD
        assert config.workers == 1
        assert config.corpus is None
        assert config.thirdparty_namespace == "license-bom"
        assert config.thirdparty_key == "thirdparty-file-name"

    def test_absolute_corpus_path_kept(self, tmp_path: Path) -> None:
        corpus = tmp_path / "elsewhere" / "corpus.json"
        config = Config.load(_write(tmp_path, f'corpus = "{corpus.as_posix()}"\n'))
        assert config.corpus == corpus

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            Config.load(tmp_path / "about.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Invalid TOML"):
            Config.load(_write(tmp_path, "accepted = [\n"))

    def test_policy(self, tmp_path: Path) -> None:
        config = Config.load(_write(tmp_path, 'accepted = ["MIT", "ISC"]\n'))
        assert list(config.policy) == ["ISC", "MIT"]


class TestConfigValidation:
    """Test rejection of invalid settings."""

    @pytest.mark.parametrize(
        "data, message",
        [
            ({"accepted": "MIT"}, "'accepted' must be a list of strings"),
            ({"accepted": ["MIT", 3]}, "'accepted' must be a list of strings"),
            ({"accepted": ["NotARealLicense-1.0"]}, "Invalid accepted license"),
            ({"accepted": ["MIT OR ISC"]}, "Invalid accepted license"),
            ({"exclude": "foo*"}, "'exclude' must be a list of strings"),
            ({"low-confidence-threshold": "high"}, "must be a number"),
            ({"low-confidence-threshold": True}, "must be a number"),
            ({"low-confidence-threshold": 1.5}, "between 0 and 1"),
            ({"workers": 0}, "positive integer"),
            ({"workers": 2.5}, "positive integer"),
            ({"corpus": 42}, "'corpus' must be a path string"),
            ({"thirdparty": "acme"}, "'thirdparty' must be a table"),
        ],
    )
    def test_invalid_settings(self, data: dict, message: str) -> None:
        with pytest.raises(ValueError, match=message):
            Config.from_dict(data)

    def test_integer_threshold(self) -> None:
        config = Config.from_dict({"low-confidence-threshold": 1})
        assert config.low_confidence_threshold == 1.0
