from __future__ import annotations

import asyncio

import pytest

from friendhelp.checkin import (
    ERROR_APOLOGY,
    FINALIZING_PLACEHOLDER,
    INPUT_PLACEHOLDER,
    OPENING_MESSAGE,
    CheckInController,
    CheckInState,
)
from friendhelp.errors import AnalysisServiceError, MalformedAnalysisError, StoreError


def test_new_check_in_opens_with_fixed_question(context) -> None:
    controller = CheckInController(context)

    assert [m.content for m in controller.messages] == [OPENING_MESSAGE]
    assert controller.messages[0].role == "assistant"
    assert controller.state is CheckInState.OPENING
    assert controller.follow_up_count == 0
    assert controller.progress == [True, False, False]
    assert controller.placeholder == INPUT_PLACEHOLDER
    assert controller.can_finalize is False


@pytest.mark.asyncio
async def test_exactly_two_follow_ups_before_auto_finalize(context, fake_analysis) -> None:
    controller = CheckInController(context)

    assert await controller.submit("Work was long") is None
    assert controller.state is CheckInState.GATHERING
    assert controller.follow_up_count == 1

    assert await controller.submit("My manager praised me") is None
    assert controller.follow_up_count == 2
    assert controller.progress == [True, True, True]

    entry = await controller.submit("I felt proud")

    assert len(fake_analysis.follow_up_calls) == 2
    assert entry is not None
    assert controller.state is CheckInState.COMPLETE
    assert entry.content == "Work was long"
    assert entry.follow_ups == ["My manager praised me", "I felt proud"]
    assert entry.analysis == fake_analysis.analysis
    assert controller.entry == entry

    stored = context.entry_store.load_entries()
    assert [e.id for e in stored] == [entry.id]


@pytest.mark.asyncio
async def test_zero_follow_up_limit_finalizes_on_first_answer(context, fake_analysis) -> None:
    controller = CheckInController(context, follow_up_limit=0)

    assert controller.follow_up_limit == 0
    assert controller.progress == [True]

    entry = await controller.submit("Quiet day")

    assert fake_analysis.follow_up_calls == []
    assert entry is not None
    assert entry.content == "Quiet day"
    assert entry.follow_ups == []
    assert controller.state is CheckInState.COMPLETE


@pytest.mark.asyncio
async def test_follow_up_receives_full_history(context, fake_analysis) -> None:
    controller = CheckInController(context)

    await controller.submit("Rainy morning")
    await controller.submit("I stayed in")

    first, second = fake_analysis.follow_up_calls
    assert first == ("Rainy morning", [OPENING_MESSAGE, "Rainy morning"])
    assert second == (
        "I stayed in",
        [OPENING_MESSAGE, "Rainy morning", "Follow-up question 1?", "I stayed in"],
    )


@pytest.mark.asyncio
async def test_finalize_with_no_follow_up_answers(context, fake_analysis) -> None:
    controller = CheckInController(context)
    await controller.submit("Had a great day")

    entry = await controller.finalize()

    assert entry is not None
    assert entry.content == "Had a great day"
    assert entry.follow_ups == []
    assert fake_analysis.analysis_calls[0][:2] == ("Had a great day", [])


@pytest.mark.asyncio
async def test_finalize_requires_one_follow_up(context, fake_analysis) -> None:
    controller = CheckInController(context)

    assert await controller.finalize() is None
    assert fake_analysis.analysis_calls == []
    assert controller.state is CheckInState.OPENING


@pytest.mark.asyncio
async def test_empty_input_is_ignored(context, fake_analysis) -> None:
    controller = CheckInController(context)

    assert await controller.submit("   ") is None
    assert len(controller.messages) == 1
    assert fake_analysis.follow_up_calls == []


@pytest.mark.asyncio
async def test_cancel_writes_nothing(context, fake_analysis) -> None:
    controller = CheckInController(context)
    await controller.submit("Not today")

    controller.cancel()

    assert controller.state is CheckInState.CANCELLED
    assert controller.messages == []
    assert context.entry_store.load_entries() == []
    assert await controller.submit("Actually...") is None
    assert await controller.finalize() is None
    assert fake_analysis.analysis_calls == []


@pytest.mark.asyncio
async def test_second_submit_while_awaiting_is_noop(context, fake_analysis) -> None:
    controller = CheckInController(context)
    fake_analysis.gate = asyncio.Event()

    pending = asyncio.create_task(controller.submit("First thought"))
    await asyncio.sleep(0)
    assert controller.awaiting_response is True
    count = len(controller.messages)

    assert await controller.submit("Second thought") is None
    assert len(controller.messages) == count

    fake_analysis.gate.set()
    await pending
    assert controller.awaiting_response is False
    assert len(fake_analysis.follow_up_calls) == 1


@pytest.mark.asyncio
async def test_follow_up_failure_apologises_and_keeps_state(context, fake_analysis) -> None:
    controller = CheckInController(context)
    await controller.submit("Busy day")
    fake_analysis.follow_up_error = AnalysisServiceError("network down")

    assert await controller.submit("Lots of meetings") is None

    assert controller.messages[-1].content == ERROR_APOLOGY
    assert controller.errored is True
    assert controller.follow_up_count == 1
    assert controller.state is CheckInState.GATHERING
    assert controller.can_finalize is True

    fake_analysis.follow_up_error = None
    await controller.submit("Trying again")
    assert controller.errored is False
    assert controller.follow_up_count == 2


@pytest.mark.asyncio
async def test_finalize_failure_keeps_conversation(context, fake_analysis) -> None:
    controller = CheckInController(context)
    await controller.submit("Quiet day")
    fake_analysis.analysis_error = MalformedAnalysisError("missing summary")
    messages = list(controller.messages)

    assert await controller.finalize() is None

    assert controller.state is CheckInState.GATHERING
    assert controller.follow_up_count == 1
    assert controller.messages == messages
    assert context.entry_store.load_entries() == []

    fake_analysis.analysis_error = None
    entry = await controller.finalize()
    assert entry is not None
    assert len(fake_analysis.analysis_calls) == 2


@pytest.mark.asyncio
async def test_late_follow_up_after_cancel_is_discarded(context, fake_analysis) -> None:
    controller = CheckInController(context)
    fake_analysis.gate = asyncio.Event()

    pending = asyncio.create_task(controller.submit("Hello"))
    await asyncio.sleep(0)
    controller.cancel()
    fake_analysis.gate.set()
    await pending

    assert controller.state is CheckInState.CANCELLED
    assert controller.messages == []
    assert controller.follow_up_count == 0


@pytest.mark.asyncio
async def test_late_analysis_after_cancel_persists_nothing(context, fake_analysis) -> None:
    controller = CheckInController(context)
    await controller.submit("Long day")
    fake_analysis.gate = asyncio.Event()

    pending = asyncio.create_task(controller.finalize())
    await asyncio.sleep(0)
    assert controller.state is CheckInState.FINALIZING
    assert controller.placeholder == FINALIZING_PLACEHOLDER
    controller.cancel()
    fake_analysis.gate.set()

    assert await pending is None
    assert controller.state is CheckInState.CANCELLED
    assert context.entry_store.load_entries() == []


@pytest.mark.asyncio
async def test_analysis_receives_prior_entries(context, fake_analysis, make_entry) -> None:
    earlier = make_entry(score=40, days_ago=1)
    context.entry_store.save_entries([earlier])
    controller = CheckInController(context)

    await controller.submit("Better than yesterday")
    entry = await controller.finalize()

    assert fake_analysis.analysis_calls[0][2] == [earlier]
    assert [e.id for e in context.entry_store.load_entries()] == [entry.id, earlier.id]


@pytest.mark.asyncio
async def test_store_failure_still_completes(context, fake_analysis, monkeypatch) -> None:
    def broken_add(entry):
        raise StoreError("disk full")

    monkeypatch.setattr(context.entry_store, "add_entry", broken_add)
    controller = CheckInController(context)
    await controller.submit("Fine day")

    entry = await controller.finalize()

    assert entry is not None
    assert controller.state is CheckInState.COMPLETE
    assert controller.entry == entry
