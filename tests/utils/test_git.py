"""Tests for git utility functions."""

from linefocus.utils.git import find_git_root


class TestFindGitRoot:
    """Tests for find_git_root function."""

    def test_find_git_root_in_repo(self, tmp_path, monkeypatch):
        """Should find .git directory from a subdirectory of the cwd."""
        (tmp_path / ".git").mkdir()
        subdir = tmp_path / "src" / "deep"
        subdir.mkdir(parents=True)
        monkeypatch.chdir(subdir)

        assert find_git_root() == tmp_path

    def test_find_git_root_not_in_repo(self, tmp_path, monkeypatch):
        """Should return None when not in a git repo."""
        monkeypatch.chdir(tmp_path)

        assert find_git_root() is None

    def test_find_git_root_with_start_path(self, tmp_path):
        """Should find git root from specified start path."""
        (tmp_path / ".git").mkdir()
        subdir = tmp_path / "notes" / "2024"
        subdir.mkdir(parents=True)

        assert find_git_root(subdir) == tmp_path

    def test_env_override_takes_precedence(self, tmp_path, monkeypatch):
        """LINEFOCUS_GIT_ROOT wins over a real .git directory."""
        (tmp_path / ".git").mkdir()
        override_path = tmp_path / "custom"
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("LINEFOCUS_GIT_ROOT", str(override_path))

        # Returned even though the directory does not exist
        assert find_git_root() == override_path

    def test_stops_at_nearest_repo(self, tmp_path):
        """Nested repositories resolve to the innermost one."""
        (tmp_path / ".git").mkdir()
        inner_repo = tmp_path / "inner"
        (inner_repo / ".git").mkdir(parents=True)
        subdir = inner_repo / "src"
        subdir.mkdir()

        assert find_git_root(subdir) == inner_repo

    def test_git_file_counts(self, tmp_path):
        """A .git file (worktree) marks a repository root too."""
        (tmp_path / ".git").write_text("gitdir: somewhere")

        assert find_git_root(tmp_path) == tmp_path
