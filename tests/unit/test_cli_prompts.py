"""
Unit tests for interactive prompt plumbing in the CLI.
"""

import threading

import pytest

from prepdeck.cli.main import _ask


class RecordingPrompt:
    """Stands in for a rich Prompt class."""

    threads: list = []

    @classmethod
    def ask(cls, text, default=None):
        cls.threads.append(threading.current_thread())
        return f"{text}:{default}"


class ClosedStdinPrompt:
    @classmethod
    def ask(cls, text, default=None):
        raise EOFError("stdin closed")


@pytest.fixture(autouse=True)
def reset_threads():
    RecordingPrompt.threads = []


class TestAsk:
    """Prompts run off the event loop on daemon threads."""

    @pytest.mark.asyncio
    async def test_returns_prompt_answer(self):
        answer = await _ask(RecordingPrompt, "Option", default="1")

        assert answer == "Option:1"

    @pytest.mark.asyncio
    async def test_runs_on_daemon_thread(self):
        await _ask(RecordingPrompt, "Option")

        thread = RecordingPrompt.threads[0]
        assert thread is not threading.main_thread()
        assert thread.daemon is True

    @pytest.mark.asyncio
    async def test_prompt_errors_propagate(self):
        with pytest.raises(EOFError):
            await _ask(ClosedStdinPrompt, "Option")
