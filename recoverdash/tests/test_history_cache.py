import json
import tempfile
import unittest
from dataclasses import FrozenInstanceError
from pathlib import Path
from unittest.mock import patch

from recoverdash.history import index_builder
from recoverdash.history.cache import HistoryIndexCache
from recoverdash.history.paths import decode_resource
from recoverdash.history.types import HistoryIndex


def _posix_decode(resource, windows=None):
    return decode_resource(resource, windows=False)


class HistoryIndexCacheTests(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.root = Path(tmpdir.name) / "History"
        self.root.mkdir()
        # Build with POSIX path decoding whatever OS runs the suite.
        patcher = patch.object(index_builder, "decode_resource", _posix_decode)
        patcher.start()
        self.addCleanup(patcher.stop)

    def _write_folder(self, name: str, resource: str, entry_id: str, timestamp: int, content: bytes) -> None:
        folder = self.root / name
        folder.mkdir(exist_ok=True)
        (folder / entry_id).write_bytes(content)
        manifest_path = folder / "entries.json"
        entries = []
        if manifest_path.exists():
            entries = json.loads(manifest_path.read_text(encoding="utf-8"))["entries"]
        entries.append({"id": entry_id, "timestamp": timestamp})
        manifest_path.write_text(json.dumps({"resource": resource, "entries": entries}), encoding="utf-8")

    def test_first_query_builds_and_later_queries_reuse(self) -> None:
        self._write_folder("f1", "file:///home/alice/proj/app.py", "a.py", 1000, b"a = 1\n")
        cache = HistoryIndexCache(self.root)
        self.assertEqual(cache.state, "uninitialized")

        self.assertEqual(cache.list_projects(), ["proj"])
        self.assertEqual(cache.state, "built")
        cache.files_for("proj")
        cache.list_projects()
        self.assertEqual(cache.build_count, 1)

    def test_list_projects_is_sorted_case_sensitively(self) -> None:
        self._write_folder("f1", "file:///home/alice/zeta/a.py", "a.py", 1000, b"a = 1\n")
        self._write_folder("f2", "file:///home/alice/Alpha/b.py", "b.py", 1000, b"b = 1\n")
        self._write_folder("f3", "file:///home/alice/beta/c.py", "c.py", 1000, b"c = 1\n")
        cache = HistoryIndexCache(self.root)

        self.assertEqual(cache.list_projects(), ["Alpha", "beta", "zeta"])

    def test_unknown_project_returns_empty_mapping(self) -> None:
        cache = HistoryIndexCache(self.root)
        files = cache.files_for("nonexistent-project")
        self.assertEqual(len(files), 0)
        self.assertEqual(cache.file_versions("nonexistent-project", "/x"), [])

    def test_project_lookup_is_case_sensitive(self) -> None:
        self._write_folder("f1", "file:///home/alice/proj/app.py", "a.py", 1000, b"a = 1\n")
        cache = HistoryIndexCache(self.root)
        self.assertEqual(len(cache.files_for("proj")), 1)
        self.assertEqual(len(cache.files_for("PROJ")), 0)

    def test_invalidate_defers_rebuild_until_next_query(self) -> None:
        self._write_folder("f1", "file:///home/alice/proj/app.py", "a.py", 1000, b"a = 1\n")
        cache = HistoryIndexCache(self.root)
        cache.list_projects()

        self._write_folder("f2", "file:///home/alice/other/b.py", "b.py", 2000, b"b = 2\n")
        cache.invalidate()
        self.assertEqual(cache.state, "stale")
        self.assertEqual(cache.build_count, 1)

        self.assertEqual(cache.list_projects(), ["other", "proj"])
        self.assertEqual(cache.build_count, 2)

    def test_rebuild_does_not_mutate_previously_returned_mapping(self) -> None:
        self._write_folder("f1", "file:///home/alice/proj/app.py", "a.py", 1000, b"a = 1\n")
        cache = HistoryIndexCache(self.root)
        before = cache.files_for("proj")
        before_versions = tuple(before["/home/alice/proj/app.py"].versions)

        self._write_folder("f1", "file:///home/alice/proj/app.py", "b.py", 2000, b"b = 2\n")
        self._write_folder("f2", "file:///home/alice/proj/lib.py", "c.py", 3000, b"c = 3\n")
        cache.invalidate()
        after = cache.files_for("proj")

        self.assertEqual(sorted(before), ["/home/alice/proj/app.py"])
        self.assertEqual(before["/home/alice/proj/app.py"].versions, before_versions)
        self.assertEqual(sorted(after), ["/home/alice/proj/app.py", "/home/alice/proj/lib.py"])
        self.assertEqual(len(after["/home/alice/proj/app.py"].versions), 2)

    def test_returned_mapping_is_read_only(self) -> None:
        self._write_folder("f1", "file:///home/alice/proj/app.py", "a.py", 1000, b"a = 1\n")
        cache = HistoryIndexCache(self.root)
        files = cache.files_for("proj")
        with self.assertRaises(TypeError):
            files["/tmp/x"] = None  # type: ignore[index]

    def test_returned_files_cannot_be_edited_in_place(self) -> None:
        self._write_folder("f1", "file:///home/alice/proj/app.py", "a.py", 1000, b"a = 1\n")
        cache = HistoryIndexCache(self.root)
        item = cache.files_for("proj")["/home/alice/proj/app.py"]

        with self.assertRaises(FrozenInstanceError):
            item.versions = ()  # type: ignore[misc]
        with self.assertRaises(AttributeError):
            item.versions.append(item.versions[0])  # type: ignore[attr-defined]

        merged = item.merged(item.versions)
        self.assertEqual(len(merged.versions), 2)
        self.assertEqual(len(cache.files_for("proj")["/home/alice/proj/app.py"].versions), 1)

    def test_include_empty_toggle_marks_stale(self) -> None:
        self._write_folder("f1", "file:///home/alice/proj/app.py", "a.py", 1000, b"\n")
        cache = HistoryIndexCache(self.root)
        self.assertEqual(cache.list_projects(), [])

        cache.include_empty = True
        self.assertEqual(cache.state, "stale")
        self.assertEqual(cache.list_projects(), ["proj"])

        cache.include_empty = True
        self.assertEqual(cache.state, "built")

    def test_missing_root_gives_empty_results(self) -> None:
        cache = HistoryIndexCache(self.root / "missing")
        self.assertFalse(cache.history_exists())
        self.assertEqual(cache.list_projects(), [])
        self.assertEqual(cache.last_report().status, "root_unavailable")
        self.assertEqual(cache.status()["lastScanStatus"], "root_unavailable")

    def test_builder_is_injectable(self) -> None:
        calls = []

        def fake_builder(root, include_empty=False, skip_folders=()):
            calls.append((root, include_empty, "home" in skip_folders, "clients" in skip_folders))
            return HistoryIndex()

        cache = HistoryIndexCache(self.root, include_empty=True, skip_folders=["Clients"], builder=fake_builder)
        cache.list_projects()
        self.assertEqual(calls, [(self.root, True, True, True)])

    def test_independent_caches_do_not_share_state(self) -> None:
        self._write_folder("f1", "file:///home/alice/proj/app.py", "a.py", 1000, b"a = 1\n")
        first = HistoryIndexCache(self.root)
        second = HistoryIndexCache(self.root)
        first.list_projects()
        self.assertEqual(second.state, "uninitialized")


if __name__ == "__main__":
    unittest.main()
