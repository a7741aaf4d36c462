"""Tests for temporary path allocation."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from app.storage.temp import TempStore


class TestTempStore:
    def test_allocate_creates_dir_but_not_file(self, tmp_path):
        store = TempStore(tmp_path / "nested" / "store")
        path = store.allocate(".pdf")
        assert path.parent.is_dir()
        assert not path.exists()
        assert path.suffix == ".pdf"

    def test_concurrent_allocations_never_collide(self, tmp_path):
        # Two stores on one directory, as two concurrent requests would have.
        stores = [TempStore(tmp_path), TempStore(tmp_path)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            paths = list(pool.map(lambda i: stores[i % 2].allocate(".upload"), range(2000)))
        assert len(set(paths)) == len(paths)

    @pytest.mark.asyncio
    async def test_write_and_remove(self, tmp_path):
        store = TempStore(tmp_path)
        path = store.allocate(".upload")
        async with store.open_for_write(path) as f:
            await f.write(b"abc")
        assert path.read_bytes() == b"abc"

        await store.remove(path)
        assert not path.exists()
        with pytest.raises(FileNotFoundError):
            await store.remove(path)
