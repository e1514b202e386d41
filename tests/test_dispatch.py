"""
Tests for the UI dispatcher.
"""

import logging
import threading

import pytest

from runtime.dispatch import ContextViolation, UIDispatcher


class TestUIDispatcher:
    def test_bound_to_creating_thread(self, dispatcher):
        assert dispatcher.is_ui_thread()
        dispatcher.require_ui_thread()

    def test_tasks_run_in_order_on_drain(self, dispatcher):
        calls = []
        dispatcher.post(calls.append, 1)
        dispatcher.post(calls.append, 2)

        assert calls == []
        assert dispatcher.pending == 2
        assert dispatcher.drain() == 2
        assert calls == [1, 2]
        assert dispatcher.pending == 0

    def test_drain_max_items(self, dispatcher):
        calls = []
        for i in range(3):
            dispatcher.post(calls.append, i)

        assert dispatcher.drain(max_items=2) == 2
        assert calls == [0, 1]
        assert dispatcher.pending == 1

    def test_drain_timeout_on_empty_queue(self, dispatcher):
        assert dispatcher.drain(timeout=0.01) == 0

    def test_drain_waits_for_posted_task(self, dispatcher):
        calls = []
        timer = threading.Timer(0.05, dispatcher.post, args=(calls.append, "late"))
        timer.start()

        executed = dispatcher.drain(timeout=2.0)
        timer.join()

        assert executed == 1
        assert calls == ["late"]

    def test_post_from_other_thread(self, dispatcher):
        calls = []
        t = threading.Thread(target=dispatcher.post, args=(calls.append, "x"))
        t.start()
        t.join()

        dispatcher.drain()

        assert calls == ["x"]

    def test_require_ui_thread_from_other_thread(self, dispatcher):
        errors = []

        def target():
            try:
                dispatcher.require_ui_thread("overlay")
            except ContextViolation as e:
                errors.append(e)

        t = threading.Thread(target=target)
        t.start()
        t.join()

        assert len(errors) == 1
        assert "overlay" in str(errors[0])

    def test_bind_current_thread(self):
        holder = {}
        t = threading.Thread(target=lambda: holder.setdefault("d", UIDispatcher()))
        t.start()
        t.join()
        dispatcher = holder["d"]
        assert not dispatcher.is_ui_thread()

        dispatcher.bind_current_thread()

        assert dispatcher.is_ui_thread()

    def test_failing_task_is_logged_and_skipped(self, dispatcher, caplog):
        calls = []

        def boom():
            raise ValueError("broken")

        dispatcher.post(boom)
        dispatcher.post(calls.append, "after")

        with caplog.at_level(logging.ERROR):
            assert dispatcher.drain() == 2

        assert calls == ["after"]
        assert "broken" in caplog.text

    def test_context_violation_propagates(self, dispatcher):
        def violate():
            raise ContextViolation("wrong thread")

        dispatcher.post(violate)

        with pytest.raises(ContextViolation):
            dispatcher.drain()
