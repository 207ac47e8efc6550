"""Tests for the file-backed key-value store."""

import asyncio

from wardmap.store import FileKeyValueStore


class TestFileKeyValueStore:
    def test_write_read_remove(self, tmp_path):
        store = FileKeyValueStore(tmp_path / "kv")

        async def scenario():
            await store.write("cached_wards_geojson", '{"a": 1}')
            value = await store.read("cached_wards_geojson")
            await store.remove("cached_wards_geojson")
            return value, await store.read("cached_wards_geojson")

        assert asyncio.run(scenario()) == ('{"a": 1}', None)

    def test_survives_new_instance(self, tmp_path):
        asyncio.run(FileKeyValueStore(tmp_path).write("k", "v"))
        assert asyncio.run(FileKeyValueStore(tmp_path).read("k")) == "v"

    def test_remove_missing_key(self, tmp_path):
        asyncio.run(FileKeyValueStore(tmp_path).remove("absent"))

    def test_key_is_escaped_into_one_file(self, tmp_path):
        store = FileKeyValueStore(tmp_path)
        asyncio.run(store.write("../escape/me", "x"))
        assert store.path_for("../escape/me").parent == tmp_path
        assert [p.name for p in tmp_path.iterdir()] == [store.path_for("../escape/me").name]
