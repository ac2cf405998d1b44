"""
Unit tests for source bundle packaging
"""
import zipfile

import pytest

from core.config import DEFAULT_EXCLUDES
from deployment.bundle import build_source_bundle, collect_bundle_files, is_excluded, normalize_excludes

pytestmark = pytest.mark.unit


class TestExclusions:
    def test_normalize_drops_blanks_and_duplicates(self):
        patterns = [".gitignore", "", ".idea", "  ", ".gitignore", "/tests/", "*.zip", "/tests"]
        assert normalize_excludes(patterns) == [".gitignore", ".idea", "/tests", "*.zip"]

    @pytest.mark.parametrize(
        "path",
        [
            ".gitignore",
            ".idea/workspace.xml",
            "docker-compose.yml",
            "core/cli.py",
            "deployment/session.py",
            "credentials.json",
            "credentials.json.template",
            "0123abcd.zip",
            "web/.DS_Store",
            "web/__pycache__/app.cpython-311.pyc",
        ],
    )
    def test_default_patterns_exclude(self, path):
        assert is_excluded(path, DEFAULT_EXCLUDES)

    @pytest.mark.parametrize("path", ["Dockerrun.aws.json", "web/index.html", "web/Dockerfile", "api/app.py"])
    def test_default_patterns_keep_app_files(self, path):
        assert not is_excluded(path, DEFAULT_EXCLUDES)

    @pytest.mark.parametrize(
        "path",
        [
            "app/core/models.py",
            "app/tests/test_models.py",
            "app/deployment/nginx.conf",
            "web/setup.py",
            "config/credentials.json",
        ],
    )
    def test_tool_paths_only_excluded_at_root(self, path):
        assert not is_excluded(path, DEFAULT_EXCLUDES)

    def test_bare_pattern_matches_any_depth(self):
        assert is_excluded("a/b/c/cache.zip", ["*.zip"])
        assert is_excluded("a/__pycache__/mod.pyc", ["__pycache__"])

    def test_anchored_pattern_matches_from_root_only(self):
        assert is_excluded("build/out.txt", ["/build"])
        assert not is_excluded("web/build/out.txt", ["/build"])

    def test_nested_path_pattern(self):
        patterns = ["classes/zipper.py"]
        assert is_excluded("classes/zipper.py", patterns)
        assert not is_excluded("classes/app.py", patterns)

    def test_directory_pattern_excludes_contents(self):
        assert is_excluded("web/static/img/logo.png", ["web/static"])
        assert not is_excluded("web/index.html", ["web/static"])


class TestBuildSourceBundle:
    def test_archive_contains_only_app_files(self, project_dir, tmp_path):
        archive = build_source_bundle(project_dir, tmp_path / "bundle.zip")

        with zipfile.ZipFile(archive) as zf:
            names = sorted(zf.namelist())

        assert names == ["Dockerrun.aws.json", "web/Dockerfile", "web/index.html"]

    def test_nested_app_directories_are_bundled(self, project_dir, tmp_path):
        for relative in ("app/core/models.py", "app/tests/test_models.py", "app/deployment/nginx.conf"):
            target = project_dir / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text("# app code\n")

        archive = build_source_bundle(project_dir, tmp_path / "bundle.zip")

        with zipfile.ZipFile(archive) as zf:
            names = zf.namelist()

        assert "app/core/models.py" in names
        assert "app/tests/test_models.py" in names
        assert "app/deployment/nginx.conf" in names
        assert "core/cli.py" not in names

    def test_entries_keep_content(self, project_dir, tmp_path):
        archive = build_source_bundle(project_dir, tmp_path / "bundle.zip")

        with zipfile.ZipFile(archive) as zf:
            assert zf.read("web/index.html").decode() == (project_dir / "web" / "index.html").read_text()

    def test_archive_inside_project_is_not_bundled(self, project_dir):
        archive_path = project_dir / "bundle.zip"
        build_source_bundle(project_dir, archive_path, excludes=[])

        with zipfile.ZipFile(archive_path) as zf:
            assert "bundle.zip" not in zf.namelist()

    def test_custom_excludes(self, project_dir, tmp_path):
        archive = build_source_bundle(project_dir, tmp_path / "bundle.zip", excludes=["web", "*.json"])

        with zipfile.ZipFile(archive) as zf:
            names = zf.namelist()

        assert "web/index.html" not in names
        assert "Dockerrun.aws.json" not in names
        assert "docker-compose.yml" in names

    def test_collect_bundle_files_sorted(self, project_dir):
        files = collect_bundle_files(project_dir, DEFAULT_EXCLUDES)
        relative = [p.relative_to(project_dir).as_posix() for p in files]
        assert relative == sorted(relative)
