"""ProjectContext: switching, classification and initialization."""

from conftest import Recorder

from frame_commander.core.events import ManagedStatusChanged, Notice, ProjectChanged
from frame_commander.core.project_context import ProjectContext, project_name


def test_switch_sends_session_then_classification(store, terminal, hub):
    ctx = ProjectContext(store, terminal, hub)
    seen = []
    ctx.on_project_change(lambda path, previous: seen.append((path, previous, ctx.active_path)))

    ctx.set_active_path("/work/alpha")

    assert terminal.switches == ["/work/alpha"]
    assert store.kinds() == ["classify"]
    assert seen == [("/work/alpha", None, "/work/alpha")]


def test_listeners_run_in_registration_order(store, hub):
    ctx = ProjectContext(store, hub=hub)
    order = []
    ctx.on_project_change(lambda p, prev: order.append("tree"))
    ctx.on_project_change(lambda p, prev: order.append("tasks"))
    ctx.on_project_change(lambda p, prev: order.append("terminal"))

    ctx.set_active_path("/a")

    assert order == ["tree", "tasks", "terminal"]


def test_duplicate_listener_is_ignored(store, hub):
    ctx = ProjectContext(store, hub=hub)
    calls = []

    def listener(path, previous):
        calls.append(path)

    ctx.on_project_change(listener)
    ctx.on_project_change(listener)
    ctx.set_active_path("/a")

    assert calls == ["/a"]


def test_null_path_clears_managed_flag_before_project_listeners(store, hub):
    ctx = ProjectContext(store, hub=hub)
    ctx.set_active_path("/a")
    ctx.apply_classification("/a", True)
    assert ctx.is_managed_project

    events = []
    ctx.on_status_change(lambda flag: events.append(("status", flag)))
    ctx.on_project_change(lambda path, previous: events.append(("project", path, previous)))
    ctx.set_active_path(None)

    assert events == [("status", False), ("project", None, "/a")]
    assert ctx.is_managed_project is False
    assert store.kinds() == ["classify"]


def test_stale_classification_is_dropped(store, hub):
    ctx = ProjectContext(store, hub=hub)
    ctx.set_active_path("/a")
    ctx.set_active_path("/b")

    assert ctx.apply_classification("/a", True) is False
    assert ctx.is_managed_project is False

    assert ctx.apply_classification("/b", True) is True
    assert ctx.is_managed_project is True


def test_switch_cancels_previous_classification(store, hub):
    ctx = ProjectContext(store, hub=hub)
    ctx.set_active_path("/a")
    _, _, first = store.last("classify")
    ctx.set_active_path("/b")

    assert not first.pending
    assert store.last("classify")[2].pending


def test_reentrant_switch_supersedes_outer_fanout(store, hub):
    ctx = ProjectContext(store, hub=hub)
    first, second = [], []

    def redirect(path, previous):
        first.append((path, previous))
        if path == "/a":
            ctx.set_active_path("/b")

    ctx.on_project_change(redirect)
    ctx.on_project_change(lambda path, previous: second.append((path, previous)))

    ctx.set_active_path("/a")

    assert first == [("/a", None), ("/b", "/a")]
    # The second listener never sees the superseded value.
    assert second == [("/b", "/a")]
    assert ctx.active_path == "/b"


def test_failing_listener_does_not_stop_fanout(store, hub):
    ctx = ProjectContext(store, hub=hub)
    seen = []

    def broken(path, previous):
        raise RuntimeError("boom")

    ctx.on_project_change(broken)
    ctx.on_project_change(lambda path, previous: seen.append(path))
    ctx.set_active_path("/a")

    assert seen == ["/a"]


def test_initialize_declined_sends_nothing(store, hub):
    ctx = ProjectContext(store, hub=hub)
    ctx.set_active_path("/work/my-app")
    questions = []

    def decline(question):
        questions.append(question)
        return False

    assert ctx.request_initialize(decline) is False
    assert questions == ["Initialize 'my-app' as a Frame project?"]
    assert "initialize" not in store.kinds()


def test_initialize_without_project_is_a_noop(store, hub):
    ctx = ProjectContext(store, hub=hub)
    assert ctx.request_initialize(lambda q: True) is False
    assert store.calls == []


def test_initialize_success_marks_project_managed(store, hub):
    ctx = ProjectContext(store, hub=hub)
    ctx.set_active_path("/work/my-app")
    initialized = []
    ctx.on_initialized(initialized.append)

    assert ctx.request_initialize(lambda q: True) is True
    path, args, _ = store.last("initialize")
    assert (path, args) == ("/work/my-app", ("my-app",))

    assert ctx.apply_initialize_result("/work/my-app", True) is True
    assert ctx.is_managed_project is True
    assert initialized == ["/work/my-app"]


def test_initialize_failure_publishes_error_notice(store, hub):
    recorder = Recorder(hub, Notice)
    ctx = ProjectContext(store, hub=hub)
    ctx.set_active_path("/work/my-app")
    ctx.request_initialize()

    assert ctx.apply_initialize_result("/work/my-app", False, "read-only filesystem") is False
    assert ctx.is_managed_project is False
    notices = recorder.of(Notice)
    assert [(n.text, n.level) for n in notices] == [("Initialize failed: read-only filesystem", "error")]


def test_stale_initialize_result_is_dropped(store, hub):
    ctx = ProjectContext(store, hub=hub)
    ctx.set_active_path("/a")
    ctx.request_initialize()
    ctx.set_active_path("/b")

    assert ctx.apply_initialize_result("/a", True) is False
    assert ctx.is_managed_project is False


def test_project_changed_carries_previous(store, hub):
    recorder = Recorder(hub, ProjectChanged)
    ctx = ProjectContext(store, hub=hub)
    ctx.set_active_path("/a")
    ctx.set_active_path("/b")

    assert recorder.of(ProjectChanged) == [ProjectChanged("/a", None), ProjectChanged("/b", "/a")]


def test_project_name_handles_both_separators():
    assert project_name("/home/me/alpha") == "alpha"
    assert project_name("C:\\Users\\me\\beta\\") == "beta"


def test_hub_unsubscribe_removes_context_listeners(store, hub):
    ctx = ProjectContext(store, hub=hub)
    projects, statuses = [], []

    def on_project(path, previous):
        projects.append(path)

    def on_status(flag):
        statuses.append(flag)

    ctx.on_project_change(on_project)
    ctx.on_status_change(on_status)
    hub.unsubscribe(ProjectChanged, on_project)
    hub.unsubscribe(ManagedStatusChanged, on_status)

    ctx.set_active_path("/a")
    ctx.apply_classification("/a", True)

    assert projects == []
    assert statuses == []
