"""
capture_edit_pipeline のテスト（アダプタをフェイクに置き換えて呼び出し順を検証）

【使用方法】
pytest src/test_capture_edit_pipeline.py

【処理内容】
- 正常系シナリオ: firefox の "Draft" ウィンドウで "hello" → "hello world"
- クリップボード取得失敗時は空バッファで続行
- 編集失敗時もウィンドウ復帰を試みてからエラーを返す
- main() の終了コード
"""

import tempfile

import pytest

from desktop_common.errors import (
    ActivationFailed,
    ClipboardUnavailable,
    EditorLaunchFailed,
    InputInjectionFailed,
    NoActiveWindow,
    ProcessLookupFailed,
    TempIOFailed,
)
from desktop_common.external_command import CommandResult
from edit_pipeline import capture_edit_pipeline as pipeline_module
from edit_pipeline.capture_edit_pipeline import CaptureEditPipeline, main
from edit_pipeline.config import EditConfig
from edit_pipeline.editor_session import EditorSession
from edit_pipeline.models import ExtensionRule, WindowHandle


class FakeWindowControl:
    def __init__(self, events, fail=None):
        self.events = events
        self.fail = fail or {}

    def _record(self, name, *args):
        self.events.append((name, *args))
        if name in self.fail:
            raise self.fail[name]

    def current_window(self):
        self._record("current_window")
        return "123"

    def resolve_process(self, window_id):
        self._record("resolve_process", window_id)
        return 4567, "firefox"

    def title(self, window_id):
        self._record("title", window_id)
        return "Draft"

    def simulate_copy(self, window_id, keys=("ctrl+a", "ctrl+c"), inter_key_delay=0.0):
        self._record("simulate_copy", window_id, tuple(keys))

    def activate(self, window_id):
        self._record("activate", window_id)

    def simulate_keys(self, window_id, keys, inter_key_delay=0.0):
        self._record("simulate_keys", window_id, tuple(keys))


class FakeClipboard:
    def __init__(self, events, content=b"hello", read_error=None, write_error=None):
        self.events = events
        self.content = content
        self.read_error = read_error
        self.write_error = write_error

    def read(self):
        self.events.append(("clipboard_read",))
        if self.read_error:
            raise self.read_error
        return self.content

    def write(self, data):
        self.events.append(("clipboard_write", data))
        if self.write_error:
            raise self.write_error
        self.content = data


class FakeEditorSession:
    def __init__(self, events, transform=lambda data: data + b" world", error=None):
        self.events = events
        self.transform = transform
        self.error = error
        self.received = []

    def edit(self, initial, extension):
        self.events.append(("edit", initial, extension))
        self.received.append((initial, extension))
        if self.error:
            raise self.error
        return self.transform(initial)


@pytest.fixture
def events():
    return []


def make_pipeline(events, config=None, wc_fail=None, clipboard=None, editor=None, rules=None):
    kwargs = {}
    if rules is not None:
        kwargs["rules"] = rules
    return CaptureEditPipeline(
        config or EditConfig(),
        window_control=FakeWindowControl(events, fail=wc_fail),
        clipboard=clipboard or FakeClipboard(events),
        editor_session=editor or FakeEditorSession(events),
        **kwargs,
    )


def names(events):
    return [event[0] for event in events]


def test_full_run_edits_clipboard_and_reactivates_once(events):
    clipboard = FakeClipboard(events, content=b"hello")
    pipeline = make_pipeline(events, clipboard=clipboard)

    result = pipeline.run()

    assert clipboard.content == b"hello world"
    assert result.window == WindowHandle("123", 4567, "Draft", "firefox")
    assert result.extension == ".md"
    assert result.initial_size == 5
    assert result.final_size == 11
    assert result.pasted is False
    assert names(events) == [
        "current_window",
        "resolve_process",
        "title",
        "simulate_copy",
        "clipboard_read",
        "edit",
        "clipboard_write",
        "activate",
    ]
    assert ("edit", b"hello", ".md") in events
    assert events.count(("activate", "123")) == 1


def test_copy_keys_come_from_config(events):
    config = EditConfig(copy_keys=["ctrl+shift+a", "ctrl+shift+c"])
    make_pipeline(events, config=config).run()
    assert ("simulate_copy", "123", ("ctrl+shift+a", "ctrl+shift+c")) in events


def test_plain_profile_pastes_after_activation_without_extension(events):
    editor = FakeEditorSession(events)
    pipeline = make_pipeline(events, config=EditConfig.for_profile("plain"), editor=editor)

    result = pipeline.run()

    assert result.pasted is True
    assert editor.received == [(b"hello", "")]
    assert events[-2:] == [("activate", "123"), ("simulate_keys", "123", ("ctrl+v",))]


def test_custom_rules_are_consulted(events):
    editor = FakeEditorSession(events)
    rules = [ExtensionRule(title="Draft", ext=".rst")]
    make_pipeline(events, editor=editor, rules=rules).run()
    assert editor.received[0][1] == ".rst"


def test_clipboard_read_failure_uses_empty_buffer(events):
    clipboard = FakeClipboard(events, read_error=ClipboardUnavailable("empty"))
    editor = FakeEditorSession(events, transform=lambda data: b"fresh text")

    result = make_pipeline(events, clipboard=clipboard, editor=editor).run()

    assert editor.received == [(b"", ".md")]
    assert clipboard.content == b"fresh text"
    assert result.initial_size == 0
    assert events.count(("activate", "123")) == 1


@pytest.mark.parametrize("error", [EditorLaunchFailed("exit 1"), TempIOFailed("disk full")])
def test_edit_failure_restores_window_before_reporting(events, error):
    clipboard = FakeClipboard(events)
    pipeline = make_pipeline(
        events, clipboard=clipboard, editor=FakeEditorSession(events, error=error)
    )

    with pytest.raises(type(error)):
        pipeline.run()

    assert names(events)[-2:] == ["edit", "activate"]
    assert events.count(("activate", "123")) == 1
    assert "clipboard_write" not in names(events)
    assert clipboard.content == b"hello"


def test_edit_failure_then_restore_failure_reports_restore_error(events):
    edit_error = EditorLaunchFailed("exit 1")
    pipeline = make_pipeline(
        events,
        wc_fail={"activate": ActivationFailed("window gone")},
        editor=FakeEditorSession(events, error=edit_error),
    )

    with pytest.raises(ActivationFailed) as excinfo:
        pipeline.run()
    assert excinfo.value.__cause__ is edit_error


def test_edit_failure_does_not_paste(events):
    pipeline = make_pipeline(
        events,
        config=EditConfig.for_profile("plain"),
        editor=FakeEditorSession(events, error=EditorLaunchFailed("exit 1")),
    )
    with pytest.raises(EditorLaunchFailed):
        pipeline.run()
    assert "simulate_keys" not in names(events)


@pytest.mark.parametrize(
    "stage, error",
    [
        ("current_window", NoActiveWindow("none")),
        ("resolve_process", ProcessLookupFailed("gone")),
    ],
)
def test_identify_failure_is_fatal_without_restore(events, stage, error):
    pipeline = make_pipeline(events, wc_fail={stage: error})
    with pytest.raises(type(error)):
        pipeline.run()
    assert "activate" not in names(events)
    assert "edit" not in names(events)


def test_copy_failure_is_fatal(events):
    pipeline = make_pipeline(events, wc_fail={"simulate_copy": InputInjectionFailed("xdotool")})
    with pytest.raises(InputInjectionFailed):
        pipeline.run()
    assert names(events)[-1] == "simulate_copy"


def test_clipboard_write_failure_is_fatal(events):
    clipboard = FakeClipboard(events, write_error=ClipboardUnavailable("xclip"))
    with pytest.raises(ClipboardUnavailable):
        make_pipeline(events, clipboard=clipboard).run()
    assert "activate" not in names(events)


def test_restore_failure_after_success_is_fatal(events):
    pipeline = make_pipeline(events, wc_fail={"activate": ActivationFailed("closed")})
    with pytest.raises(ActivationFailed):
        pipeline.run()


def test_paste_failure_leaves_edited_text_in_clipboard(events):
    clipboard = FakeClipboard(events)
    pipeline = make_pipeline(
        events,
        config=EditConfig.for_profile("plain"),
        clipboard=clipboard,
        wc_fail={"simulate_keys": InputInjectionFailed("xdotool")},
    )
    with pytest.raises(InputInjectionFailed):
        pipeline.run()
    assert clipboard.content == b"hello world"
    assert names(events).count("simulate_keys") == 1


def test_real_editor_session_nonzero_exit_cleans_up_and_restores(events, tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))

    def failing_editor(name, args, input=None, capture=True, timeout=None):
        events.append(("editor_process", name))
        return CommandResult(returncode=1)

    session = EditorSession(["gvim", "-f"], runner=failing_editor)
    pipeline = make_pipeline(events, editor=session)

    with pytest.raises(EditorLaunchFailed):
        pipeline.run()
    assert list(tmp_path.iterdir()) == []
    assert names(events)[-2:] == ["editor_process", "activate"]


class StubPipeline:
    error = None
    configs = []

    def __init__(self, config):
        StubPipeline.configs.append(config)

    def run(self):
        if StubPipeline.error:
            raise StubPipeline.error


@pytest.fixture
def stub_pipeline(monkeypatch):
    for name in ["DIVA_EDIT_PROFILE", "DIVA_EDIT_PASTE_KEYS", "DIVA_EDIT_EDITOR", "DIVA_EDIT_LOG_LEVEL"]:
        monkeypatch.delenv(name, raising=False)
    StubPipeline.error = None
    StubPipeline.configs = []
    monkeypatch.setattr(pipeline_module, "CaptureEditPipeline", StubPipeline)
    return StubPipeline


def test_main_success_exit_code(stub_pipeline):
    assert main([]) == 0
    assert stub_pipeline.configs[0].profile == "prose"


def test_main_failure_exit_code(stub_pipeline, caplog):
    stub_pipeline.error = EditorLaunchFailed("エディタ gvim が異常終了しました")
    assert main([]) == 1
    assert "エディタ gvim が異常終了しました" in caplog.text


def test_main_interrupt_exit_code(stub_pipeline):
    stub_pipeline.error = KeyboardInterrupt()
    assert main([]) == 130


def test_main_invalid_environment(stub_pipeline, monkeypatch):
    monkeypatch.setenv("DIVA_EDIT_PROFILE", "fancy")
    assert main([]) == 1
    assert stub_pipeline.configs == []


def test_main_flags_override_config(stub_pipeline):
    assert main(["--profile", "plain", "--editor", "gvim -f -c ':set tw=72'", "--no-paste",
                 "--key-delay", "0.1", "--no-extension-hints"]) == 0
    config = stub_pipeline.configs[0]
    assert config.profile == "plain"
    assert config.editor_command == ["gvim", "-f", "-c", ":set tw=72"]
    assert config.paste_keys == []
    assert config.key_delay == 0.1
    assert config.extension_hints is False


def test_main_paste_keys_flag(stub_pipeline):
    assert main(["--paste-keys", "shift+Insert"]) == 0
    assert stub_pipeline.configs[0].paste_keys == ["shift+Insert"]
