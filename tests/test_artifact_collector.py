"""
Tests for artifact collection and archive writing.
"""

import zipfile
from pathlib import Path

import pytest

from lambdakit.models.artifacts import ArtifactManifest
from lambdakit.services.errors import DuplicateArtifactError, IncludePathNotFoundError
from lambdakit.services.packaging import RuleMatcher, collect_artifacts, write_archive


def _make_tree(root: Path) -> Path:
    (root / "lib").mkdir(parents=True)
    (root / "index.js").write_text("module.exports = {};")
    (root / "lib" / "helper.js").write_text("exports.x = 1;")
    (root / ".DS_Store").write_bytes(b"\x00")
    return root


class TestCollectArtifacts:

    def test_whole_root_skips_os_metadata(self, tmp_path: Path):
        root = _make_tree(tmp_path / "pkg")
        manifest = collect_artifacts(root, ["."], RuleMatcher([]))

        assert manifest.archive_names == ["index.js", "lib/helper.js"]
        assert manifest.entries[0].source_path == (root / "index.js").resolve()

    def test_defaults_to_whole_root(self, tmp_path: Path):
        root = _make_tree(tmp_path / "pkg")
        assert collect_artifacts(root).archive_names == ["index.js", "lib/helper.js"]

    def test_directory_include_prefixed_with_basename(self, tmp_path: Path):
        root = _make_tree(tmp_path / "pkg")
        (root / "lib" / "nested").mkdir()
        (root / "lib" / "nested" / "deep.js").write_text("")

        manifest = collect_artifacts(root, ["lib"])

        assert manifest.archive_names == ["lib/helper.js", "lib/nested/deep.js"]

    def test_file_include_named_by_its_path(self, tmp_path: Path):
        root = _make_tree(tmp_path / "pkg")
        manifest = collect_artifacts(root, ["lib/helper.js"])
        assert manifest.archive_names == ["lib/helper.js"]

    def test_exclusions_apply_relative_to_root(self, tmp_path: Path):
        root = _make_tree(tmp_path / "pkg")
        (root / "tests").mkdir()
        (root / "tests" / "spec.js").write_text("")

        manifest = collect_artifacts(root, ["."], RuleMatcher(["^tests/"]))

        assert manifest.archive_names == ["index.js", "lib/helper.js"]

    def test_missing_include_is_fatal(self, tmp_path: Path):
        root = _make_tree(tmp_path / "pkg")
        with pytest.raises(IncludePathNotFoundError):
            collect_artifacts(root, [".", "missing"])

    def test_duplicate_archive_names_fail(self, tmp_path: Path):
        root = _make_tree(tmp_path / "pkg")
        with pytest.raises(DuplicateArtifactError):
            collect_artifacts(root, ["lib", "lib/helper.js"])


class TestArtifactManifest:

    def test_rejects_duplicates_on_construction(self, tmp_path: Path):
        with pytest.raises(DuplicateArtifactError):
            ArtifactManifest(
                entries=[
                    {"archive_name": "a.js", "source_path": tmp_path / "a.js"},
                    {"archive_name": "a.js", "source_path": tmp_path / "b.js"},
                ]
            )


class TestWriteArchive:

    def test_zip_entries_follow_manifest(self, tmp_path: Path):
        root = _make_tree(tmp_path / "pkg")
        manifest = collect_artifacts(root)

        dest = write_archive(manifest, tmp_path / "out" / "fn.zip")

        with zipfile.ZipFile(dest) as archive:
            assert archive.namelist() == ["index.js", "lib/helper.js"]
            assert archive.read("lib/helper.js") == b"exports.x = 1;"
