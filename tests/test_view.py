from __future__ import annotations

from serialmon.classifier import LineStyle
from serialmon.interrupts import InterruptTracker
from serialmon.messages import ClearDisplay, Exit, Raw, Stop
from serialmon.ui.editor import InputEditState, Mode
from serialmon.ui.view import Key, MonitorView
from tests.utils import FakeClock, Outbox


def _view(**kwargs) -> tuple[MonitorView, Outbox]:
    outbox = Outbox()
    return MonitorView(outbox, **kwargs), outbox


def _type(view: MonitorView, text: str) -> None:
    for char in text:
        view.handle_key(Key.CHAR, char)


def test_edit_state_cursor_stays_in_bounds() -> None:
    edit = InputEditState()
    edit.backspace()
    edit.left()
    assert (edit.buffer, edit.cursor) == ("", 0)

    for char in "scän":
        edit.insert(char)
    edit.right()
    assert edit.cursor == 4
    edit.left()
    edit.left()
    edit.backspace()
    assert (edit.buffer, edit.cursor) == ("sän", 1)


def test_typing_inserts_at_cursor() -> None:
    view, _ = _view()
    _type(view, "sca")
    view.handle_key(Key.LEFT)
    _type(view, "X")
    assert view.edit.buffer == "scXa"
    assert view.edit.cursor == 3


def test_non_printable_characters_are_ignored() -> None:
    view, _ = _view()
    view.handle_key(Key.CHAR, "\x1b")
    view.handle_key(Key.CHAR, "\t")
    assert view.edit.buffer == ""


def test_enter_commits_and_emits_raw() -> None:
    view, outbox = _view()
    _type(view, "scan -ap")
    view.handle_key(Key.ENTER)

    assert outbox.sent == [Raw("scan -ap")]
    assert view.edit.buffer == ""
    assert view.edit.cursor == 0
    assert view.history.entries == ("scan -ap", "")
    assert view.history.on_staging
    assert view.scrollback == ["scan -ap"]
    assert view.finished is False


def test_exit_command_finishes_after_emitting() -> None:
    view, outbox = _view()
    _type(view, " Exit ")
    view.handle_key(Key.ENTER)

    assert outbox.sent == [Raw(" Exit ")]
    assert view.finished is True
    assert view.handle_key(Key.CHAR, "x") is False


def test_up_down_recall_history_with_cursor_at_end() -> None:
    view, _ = _view()
    for command in ("scan", "show ap"):
        _type(view, command)
        view.handle_key(Key.ENTER)

    view.handle_key(Key.UP)
    assert (view.edit.buffer, view.edit.cursor) == ("show ap", 7)
    view.handle_key(Key.UP)
    view.handle_key(Key.UP)
    assert view.edit.buffer == "scan"
    view.handle_key(Key.DOWN)
    view.handle_key(Key.DOWN)
    assert (view.edit.buffer, view.edit.cursor) == ("", 0)


def test_escape_toggles_navigation_mode() -> None:
    view, _ = _view()
    view.handle_key(Key.ESCAPE)
    assert view.mode is Mode.NAVIGATION

    assert view.handle_key(Key.CHAR, "a") is False
    assert view.handle_key(Key.ENTER) is False
    assert view.edit.buffer == ""

    view.handle_key(Key.ESCAPE)
    assert view.mode is Mode.INSERT


def test_navigation_arrows_scroll_instead_of_history() -> None:
    view, _ = _view()
    for index in range(50):
        view.receive(f"line {index}\n")
    view.visible_lines(10)
    bottom = view.scroll.offset

    view.handle_key(Key.ESCAPE)
    view.handle_key(Key.UP)
    view.handle_key(Key.WHEEL_UP)
    assert view.scroll.manual is True
    assert view.scroll.offset == bottom - 2
    assert view.edit.buffer == ""

    view.handle_key(Key.DOWN)
    view.handle_key(Key.PAGE_DOWN)
    assert view.scroll.offset == bottom
    assert view.scroll.manual is False


def test_page_keys_and_wheel_scroll_in_insert_mode() -> None:
    view, _ = _view()
    for index in range(50):
        view.receive(f"line {index}\n")
    view.visible_lines(10)

    view.handle_key(Key.PAGE_UP)
    assert view.scroll.manual is True
    lines = view.visible_lines(10)
    view.receive("new line\n")
    assert view.visible_lines(10) == lines

    view.handle_key(Key.WHEEL_DOWN)
    view.handle_key(Key.WHEEL_DOWN)
    assert view.scroll.manual is False


def test_auto_follow_shows_newest_lines() -> None:
    view, _ = _view()
    for index in range(30):
        view.receive(f"line {index}\r\n")

    visible = view.visible_lines(10)
    assert visible[-1][1] == "line 29"
    assert len(visible) == 9


def test_device_lines_are_styled_by_classifier() -> None:
    view, _ = _view()
    view.receive("ERROR: sensor offline\n")
    view.receive("[ ===== BOOT ===== ]\n")

    assert view.visible_lines(10) == [
        (LineStyle("red").to_prompt_toolkit(), "ERROR: sensor offline"),
        (LineStyle("yellow", bold=True).to_prompt_toolkit(), "[ ===== BOOT ===== ]"),
    ]


def test_no_color_renders_plain() -> None:
    view, _ = _view(color=False)
    view.receive("ERROR: sensor offline\n")
    assert view.visible_lines(5) == [("", "ERROR: sensor offline")]


def test_clear_display_empties_scrollback() -> None:
    view, outbox = _view()
    view.receive("> scanning\n")
    _type(view, "CLEAR")
    view.handle_key(Key.ENTER)
    view.receive(ClearDisplay())

    assert outbox.sent == [Raw("CLEAR")]
    assert view.scrollback == []
    assert view.visible_lines(10) == []


def test_interrupt_sends_stop() -> None:
    view, outbox = _view()
    view.handle_key(Key.INTERRUPT)
    assert outbox.sent == [Stop()]
    assert view.finished is False


def test_repeated_interrupts_exit() -> None:
    clock = FakeClock()
    view, outbox = _view(tracker=InterruptTracker(clock=clock))
    for _ in range(3):
        view.handle_key(Key.INTERRUPT)
        clock.advance(0.5)

    assert outbox.sent == [Stop(), Stop(), Stop(), Exit()]
    assert view.finished is True
    assert view.exit_reason == "repeated interrupt"


def test_interrupt_ignored_in_navigation_mode() -> None:
    view, outbox = _view()
    view.handle_key(Key.ESCAPE)
    assert view.handle_key(Key.INTERRUPT) is False
    assert outbox.sent == []


def test_failed_stop_is_shown_in_scrollback() -> None:
    view, outbox = _view()
    outbox.close()
    view.handle_key(Key.INTERRUPT)
    assert view.scrollback == ["Couldn't stop!"]


def test_injected_tracker_is_used() -> None:
    tracker = InterruptTracker(clock=FakeClock())
    view, _ = _view(tracker=tracker)
    assert view.tracker is tracker


def test_slow_interrupts_keep_the_view_open() -> None:
    clock = FakeClock()
    view, outbox = _view(tracker=InterruptTracker(clock=clock))
    for _ in range(4):
        view.handle_key(Key.INTERRUPT)
        clock.advance(2.0)

    assert outbox.sent == [Stop(), Stop(), Stop(), Stop()]
    assert view.finished is False
