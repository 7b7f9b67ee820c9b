"""Unit tests for JsonFileCache."""

import pytest

from aoimap.features.cache import JsonFileCache

pytestmark = pytest.mark.unit


class TestJsonFileCache:

    def test_missing_key(self, cache):
        assert cache.get("nothing_here") is None

    def test_set_then_get(self, cache):
        cache.set("aoi_features_backup", '[{"id": "1"}]')
        assert cache.get("aoi_features_backup") == '[{"id": "1"}]'

    def test_overwrite(self, cache):
        cache.set("k", "one")
        cache.set("k", "two")
        assert cache.get("k") == "two"

    def test_survives_new_instance(self, tmp_path):
        JsonFileCache(tmp_path / "c").set("k", "v")
        assert JsonFileCache(tmp_path / "c").get("k") == "v"

    def test_no_temp_file_left(self, cache):
        cache.set("k", "v")
        assert [p.name for p in cache.directory.iterdir()] == ["k.json"]

    def test_creates_directory(self, tmp_path):
        JsonFileCache(tmp_path / "a" / "b")
        assert (tmp_path / "a" / "b").is_dir()

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", "with space"])
    def test_invalid_key(self, cache, key):
        with pytest.raises(ValueError):
            cache.get(key)
