"""Tests for the temporary-file reconciler."""

from pathlib import Path

import pytest

from app.reconcile.engine import TempFileReconciler


def _touch(directory: Path, name: str) -> Path:
    path = directory / name
    path.write_bytes(b"x")
    return path


class TestTrack:
    def test_track_is_idempotent(self, tmp_path):
        r = TempFileReconciler()
        p = tmp_path / "a.upload"
        r.track(p)
        r.track(p)
        r.track(str(p))
        assert r.tracked == [p]

    def test_track_keeps_insertion_order(self, tmp_path):
        r = TempFileReconciler()
        paths = [tmp_path / n for n in ("c", "a", "b")]
        for p in paths:
            r.track(p)
        assert r.tracked == paths


class TestReconcile:
    @pytest.mark.asyncio
    async def test_deletes_every_tracked_file(self, tmp_path):
        r = TempFileReconciler()
        files = [r.track(_touch(tmp_path, f"{i}.upload")) for i in range(3)]

        report = await r.reconcile()

        assert report.deleted == 3
        assert report.failed == 0
        assert not any(p.exists() for p in files)

    @pytest.mark.asyncio
    async def test_never_created_path_counts_as_missing(self, tmp_path):
        r = TempFileReconciler()
        r.track(tmp_path / "never-written.pdf")
        r.track(_touch(tmp_path, "real.upload"))

        report = await r.reconcile()

        assert report.deleted == 1
        assert report.missing == 1
        assert report.failed == 0

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_others(self, tmp_path):
        """A failing delete is counted; the rest of the batch still runs."""
        attempted: list[Path] = []
        bad = tmp_path / "locked.upload"

        async def remover(path: Path) -> None:
            attempted.append(path)
            if path == bad:
                raise PermissionError("locked")
            path.unlink()

        r = TempFileReconciler(remover=remover)
        good = [r.track(_touch(tmp_path, f"{i}.upload")) for i in range(2)]
        r.track(_touch(tmp_path, "locked.upload"))

        report = await r.reconcile()

        assert sorted(attempted) == sorted(good + [bad])
        assert report.deleted == 2
        assert report.failed == 1
        assert "locked" in report.errors[0]
        assert not any(p.exists() for p in good)

    @pytest.mark.asyncio
    async def test_each_path_attempted_at_most_once(self, tmp_path):
        calls: list[Path] = []

        async def remover(path: Path) -> None:
            calls.append(path)
            path.unlink()

        r = TempFileReconciler(remover=remover)
        p = _touch(tmp_path, "a.upload")
        r.track(p)
        r.track(p)

        await r.reconcile()
        second = await r.reconcile()

        assert calls == [p]
        assert second.attempted == 0

    @pytest.mark.asyncio
    async def test_paths_tracked_after_reconcile_are_picked_up_next_time(self, tmp_path):
        r = TempFileReconciler()
        first = r.track(_touch(tmp_path, "first.upload"))
        await r.reconcile()

        late = r.track(_touch(tmp_path, "late.pdf"))
        report = await r.reconcile()

        assert report.deleted == 1
        assert not first.exists()
        assert not late.exists()
        assert r.pending == []

    @pytest.mark.asyncio
    async def test_empty_reconcile(self):
        report = await TempFileReconciler().reconcile()
        assert report.attempted == 0
