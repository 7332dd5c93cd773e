"""FileTreeNavigator: visibility, cursor movement and focus hand-off."""

import pytest
from conftest import Recorder

from frame_commander.core.events import FileOpened, ProjectChanged
from frame_commander.core.file_tree import FileNode, FileTreeNavigator
from frame_commander.core.focus import FocusOwner

ROOT = "/work/alpha"


def _nodes():
    return [
        FileNode(f"{ROOT}/src", "src", True, (
            FileNode(f"{ROOT}/src/app.py", "app.py"),
            FileNode(f"{ROOT}/src/util", "util", True, (
                FileNode(f"{ROOT}/src/util/io.py", "io.py"),
            )),
        )),
        FileNode(f"{ROOT}/README.md", "README.md"),
    ]


@pytest.fixture
def tree(store, focus, hub):
    navigator = FileTreeNavigator(store, focus, hub)
    navigator.root_path = ROOT
    navigator.load(_nodes())
    return navigator


def _visible(tree):
    return [item.node.name for item in tree.visible_items()]


def test_directories_start_collapsed(tree):
    assert _visible(tree) == ["src", "README.md"]
    assert not tree.is_visible(f"{ROOT}/src/app.py")


def test_focus_enters_at_first_item(tree, focus):
    assert tree.focus() is True
    assert tree.focused_path == f"{ROOT}/src"
    assert focus.current is FocusOwner.FILE_TREE


def test_focus_on_empty_tree_is_refused(store, focus, hub):
    navigator = FileTreeNavigator(store, focus, hub)
    assert navigator.focus() is False
    assert focus.current is FocusOwner.NONE


def test_arrows_wrap_around(tree):
    tree.focus()
    tree.handle_key("ArrowUp")
    assert tree.focused_path == f"{ROOT}/README.md"
    tree.handle_key("ArrowDown")
    assert tree.focused_path == f"{ROOT}/src"


def test_right_and_left_expand_and_collapse(tree):
    tree.focus()
    tree.handle_key("ArrowRight")
    assert _visible(tree) == ["src", "app.py", "util", "README.md"]

    tree.handle_key("ArrowDown")
    tree.handle_key("ArrowRight")  # file: no-op
    assert tree.focused_path == f"{ROOT}/src/app.py"
    assert _visible(tree) == ["src", "app.py", "util", "README.md"]

    tree.handle_key("ArrowUp")
    tree.handle_key("ArrowLeft")
    assert _visible(tree) == ["src", "README.md"]


def test_hidden_cursor_moves_to_an_end(tree):
    tree.focus()
    tree.expand(f"{ROOT}/src")
    tree.handle_key("ArrowDown")
    assert tree.focused_path == f"{ROOT}/src/app.py"

    tree.collapse(f"{ROOT}/src")
    assert tree.focused_path == f"{ROOT}/src/app.py"
    tree.handle_key("ArrowDown")
    assert tree.focused_path == f"{ROOT}/src"

    tree.expand(f"{ROOT}/src")
    tree.handle_key("ArrowDown")
    tree.collapse(f"{ROOT}/src")
    tree.handle_key("ArrowUp")
    assert tree.focused_path == f"{ROOT}/README.md"


def test_expansion_survives_collapse_of_parent(tree):
    tree.expand(f"{ROOT}/src")
    tree.expand(f"{ROOT}/src/util")
    tree.collapse(f"{ROOT}/src")
    assert not tree.is_visible(f"{ROOT}/src/util/io.py")

    tree.expand(f"{ROOT}/src")
    assert _visible(tree) == ["src", "app.py", "util", "io.py", "README.md"]


def test_enter_opens_file_and_toggles_directory(tree, hub):
    recorder = Recorder(hub, FileOpened)
    tree.focus()

    tree.handle_key("Enter")
    assert tree.is_expanded(f"{ROOT}/src")
    assert recorder.events == []

    tree.handle_key("ArrowDown")
    tree.handle_key("Enter")
    assert recorder.of(FileOpened) == [FileOpened(f"{ROOT}/src/app.py", FocusOwner.FILE_TREE)]


def test_escape_returns_to_terminal_and_keeps_cursor(tree, focus, surfaces):
    tree.focus()
    tree.handle_key("ArrowUp")
    tree.handle_key("Escape")

    assert tree.focused is False
    assert tree.focused_path is None
    assert tree.remembered_path == f"{ROOT}/README.md"
    assert surfaces == ["terminal"]
    assert focus.current is FocusOwner.TERMINAL

    tree.focus()
    assert tree.focused_path == f"{ROOT}/README.md"


def test_reentry_uses_nearest_visible_ancestor(tree):
    tree.expand(f"{ROOT}/src")
    tree.expand(f"{ROOT}/src/util")
    tree.focus()
    for _ in range(3):
        tree.handle_key("ArrowDown")
    assert tree.focused_path == f"{ROOT}/src/util/io.py"
    tree.unfocus()

    tree.collapse(f"{ROOT}/src/util")
    tree.focus()
    assert tree.focused_path == f"{ROOT}/src/util"


def test_blur_forgets_cursor(tree):
    tree.focus()
    tree.handle_key("ArrowUp")
    tree.blur()
    tree.focus()
    assert tree.focused_path == f"{ROOT}/src"


def test_keys_ignored_while_unfocused(tree):
    assert tree.handle_key("ArrowDown") is False
    assert tree.handle_key("Enter") is False


def test_reload_keeps_expansion_and_cursor(tree):
    tree.expand(f"{ROOT}/src")
    tree.focus()
    tree.handle_key("ArrowDown")

    tree.load(_nodes() + [FileNode(f"{ROOT}/setup.cfg", "setup.cfg")])

    assert tree.is_expanded(f"{ROOT}/src")
    assert tree.focused_path == f"{ROOT}/src/app.py"


def test_tree_for_other_root_is_dropped(tree):
    assert tree.apply_tree("/work/beta", [FileNode("/work/beta/x", "x")]) is False
    assert _visible(tree) == ["src", "README.md"]


def test_project_switch_clears_and_requests_tree(tree, store, hub):
    tree.bind(hub)
    tree.expand(f"{ROOT}/src")
    hub.publish(ProjectChanged("/work/beta", ROOT))

    assert tree.root_path == "/work/beta"
    assert tree.visible_items() == []
    assert store.last("load_file_tree")[0] == "/work/beta"


def test_payload_round_trip_keeps_directory_flag():
    node = FileNode.from_payload({
        "path": "/p/d",
        "name": "d",
        "isDirectory": True,
        "children": [{"path": "/p/d/f", "name": "f", "isDirectory": False}],
    })
    assert node.is_directory
    assert node.children[0].to_payload() == {"path": "/p/d/f", "name": "f", "isDirectory": False, "children": []}
