"""
tests/test_config.py — YAML Configuration Loader Tests
========================================================
"""

from __future__ import annotations

import pytest

from forge.config import load_config
from forge.constants import GITHUB_SPT_RELEASES_URL, slugify


def _write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_full(self, tmp_path):
        path = _write(tmp_path, (
            'site_name: "The Forge"\n'
            'site_url: "https://forge.example.test"\n'
            "api_port: 9000\n"
            'spt_releases_url: "https://mirror.example.test/releases"\n'
            "spt_sync_interval_minutes: 15\n"
        ))
        cfg = load_config(path)
        assert cfg.site_name == "The Forge"
        assert cfg.api_port == 9000
        assert cfg.spt_releases_url == "https://mirror.example.test/releases"
        assert cfg.spt_sync_interval_minutes == 15
        assert cfg.user_agent == "The Forge (https://forge.example.test)"

    def test_defaults(self, tmp_path):
        path = _write(tmp_path, 'site_name: F\nsite_url: "https://f.test"\napi_port: "8000"\n')
        cfg = load_config(path)
        assert cfg.api_port == 8000
        assert cfg.spt_releases_url == GITHUB_SPT_RELEASES_URL
        assert cfg.spt_sync_interval_minutes == 0

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_missing_key(self, tmp_path):
        path = _write(tmp_path, "site_name: F\n")
        with pytest.raises(KeyError):
            load_config(path)

    def test_frozen(self, tmp_path):
        path = _write(tmp_path, 'site_name: F\nsite_url: "https://f.test"\napi_port: 8000\n')
        cfg = load_config(path)
        with pytest.raises(AttributeError):
            cfg.site_name = "Other"


class TestSlugify:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Beta.1 (Hotfix)", "beta1-hotfix"),
            ("some_mod  name", "some-mod-name"),
            ("--Edge--", "edge"),
            ("Ünïcode", "ncode"),
        ],
    )
    def test_slugify(self, text, expected):
        assert slugify(text) == expected
