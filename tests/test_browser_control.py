"""Tests for the focus relay and workspace snapshot/restore helpers."""

import logging
import threading

import pytest

from workbench.browser import (
    BrowserControl,
    BrowserTab,
    BrowserWindow,
    FocusRelay,
    restore_workspace,
    snapshot_windows,
)
from workbench.models.types import Workspace, WorkspaceTab, WorkspaceWindow


class FakeBrowser:
    """In-memory browser recording every call."""

    def __init__(self, windows=None, fail_on=None):
        self.windows = windows or []
        self.calls = []
        self.fail_on = fail_on or set()

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    def list_windows(self):
        return self.windows

    def get_tab(self, tab_id):
        for window in self.windows:
            for tab in window.tabs:
                if tab.id == tab_id:
                    return tab
        return None

    def focus_window(self, window_id):
        self._record("focus_window", window_id)

    def focus_tab(self, tab_id):
        self._record("focus_tab", tab_id)

    def close_tab(self, tab_id):
        self._record("close_tab", tab_id)

    def close_window(self, window_id):
        self._record("close_window", window_id)

    def create_window(self, urls):
        self._record("create_window", list(urls))
        return len(self.calls)

    def create_tab(self, url, window_id=None):
        self._record("create_tab", url, window_id)
        return None


@pytest.fixture
def browser():
    return FakeBrowser(
        windows=[
            BrowserWindow(
                window_id=10,
                tabs=(
                    BrowserTab(id=1, window_id=10, url="https://a.example", title="A", active=True),
                    BrowserTab(id=2, window_id=10, url="chrome://settings", title="Settings"),
                ),
            ),
            BrowserWindow(window_id=20, tabs=(BrowserTab(id=3, window_id=20, url="https://b.example"),)),
        ]
    )


def test_fake_satisfies_protocol(browser):
    assert isinstance(browser, BrowserControl)


def _wait_for_relay(timeout=2.0):
    """Join any focus threads still running."""
    for thread in threading.enumerate():
        if thread.name.startswith("focus-tab-"):
            thread.join(timeout=timeout)


class TestFocusRelay:
    def test_focuses_window_then_tab(self, browser):
        FocusRelay(browser, settle_delay=0).request_focus(3)
        _wait_for_relay()
        assert browser.calls == [("focus_window", 20), ("focus_tab", 3)]

    def test_returns_before_focus_completes(self, browser):
        release = threading.Event()
        focused = browser.focus_window

        def slow_focus_window(window_id):
            release.wait(timeout=2)
            focused(window_id)

        browser.focus_window = slow_focus_window
        assert FocusRelay(browser, settle_delay=0).request_focus(1) is None
        assert browser.calls == []
        running = [t for t in threading.enumerate() if t.name == "focus-tab-1"]
        assert running and running[0].daemon

        release.set()
        _wait_for_relay()
        assert browser.calls == [("focus_window", 10), ("focus_tab", 1)]

    def test_errors_are_logged_not_raised(self, browser, caplog):
        browser.fail_on = {"focus_window"}
        with caplog.at_level(logging.ERROR, logger="workbench.browser.relay"):
            FocusRelay(browser, settle_delay=0).request_focus(1)
            _wait_for_relay()
        assert "focus-tab failed" in caplog.text
        assert ("focus_tab", 1) not in browser.calls

    def test_unknown_tab_does_nothing(self, browser):
        FocusRelay(browser, settle_delay=0).request_focus(999)
        _wait_for_relay()
        assert browser.calls == []


def test_snapshot_windows(browser):
    windows = snapshot_windows(browser)
    assert [w.id for w in windows] == ["10", "20"]
    assert windows[0].name == "Window 1"
    assert [t.url for t in windows[0].tabs] == ["https://a.example", "chrome://settings"]
    assert windows[1].tabs[0].title is None


class TestRestoreWorkspace:
    def _workspace(self):
        return Workspace(
            id="w",
            name="Morning",
            windows=[
                WorkspaceWindow(
                    id="1",
                    tabs=(WorkspaceTab(url="https://a.example"), WorkspaceTab(url="chrome://settings")),
                ),
                WorkspaceWindow(id="2", tabs=(WorkspaceTab(url="file:///tmp/x"),)),
                WorkspaceWindow(id="3", tabs=(WorkspaceTab(url="http://c.example"),)),
            ],
        )

    def test_one_window_per_saved_window_http_only(self, browser):
        assert restore_workspace(browser, self._workspace()) == 2
        assert browser.calls == [
            ("create_window", ["https://a.example"]),
            ("create_window", ["http://c.example"]),
        ]

    def test_restrict_to_some_windows(self, browser):
        assert restore_workspace(browser, self._workspace(), window_ids=["3"]) == 1
        assert browser.calls == [("create_window", ["http://c.example"])]

    def test_failures_are_skipped(self, browser):
        browser.fail_on = {"create_window"}
        assert restore_workspace(browser, self._workspace()) == 0
        assert len(browser.calls) == 2
