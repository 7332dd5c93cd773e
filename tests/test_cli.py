"""CLI commands against a temporary project."""

import pytest
from typer.testing import CliRunner

from frame_commander import __version__
from frame_commander.cli.commands import app

runner = CliRunner()


@pytest.fixture
def project(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    root = tmp_path / "demo"
    (root / "src").mkdir(parents=True)
    (root / "src" / "main.py").write_text("print('hi')\n", encoding="utf-8")
    return root


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_status_of_unmanaged_project(project):
    result = runner.invoke(app, ["status", str(project)])
    assert result.exit_code == 0
    assert "Managed: no" in result.output


def test_init_add_and_start(project):
    result = runner.invoke(app, ["init", str(project), "--yes"])
    assert result.exit_code == 0
    assert (project / ".frame" / "config.json").is_file()

    result = runner.invoke(app, ["add", "Fix login", "--path", str(project), "--priority", "high"])
    assert result.exit_code == 0
    assert "Fix login" in result.output

    result = runner.invoke(app, ["status", str(project)])
    assert "1 pending" in result.output


def test_unknown_task_exits_with_error(project):
    result = runner.invoke(app, ["start", "task-nope", "--path", str(project)])
    assert result.exit_code == 1
    assert "Unknown task" in result.output


def test_unknown_filter(project):
    result = runner.invoke(app, ["tasks", str(project), "--filter", "someday"])
    assert result.exit_code == 1


def test_tree_lists_files(project):
    result = runner.invoke(app, ["tree", str(project), "--expand"])
    assert result.exit_code == 0
    assert "main.py" in result.output


def test_edit_rewrites_file(project):
    target = project / "src" / "main.py"
    result = runner.invoke(app, ["edit", str(target), "--text", "print('bye')\n", "--path", str(project)])
    assert result.exit_code == 0
    assert target.read_text(encoding="utf-8") == "print('bye')\n"


def test_verbose_flag_is_accepted(project):
    result = runner.invoke(app, ["--verbose", "status", str(project)])
    assert result.exit_code == 0
    assert "Managed: no" in result.output
