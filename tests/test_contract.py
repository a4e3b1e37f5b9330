"""
tests/test_contract.py

Boundary operations: interact, totalInteractions, getAllUsers,
getAllTimestamps, latestInteraction.
"""

import pytest

from interactlog import (
    CallContext,
    InteractionContract,
    InteractionLedger,
    OPERATIONS,
    RecordingObserver,
    UnknownOperationError,
    ZERO_IDENTITY,
)

ALICE = "0x" + "a1" * 20
BOB   = "0x" + "b0" * 20


@pytest.fixture
def contract():
    return InteractionContract(InteractionLedger())


class TestCallContext:

    def test_fixed_clock(self):
        ctx = CallContext.fixed(ALICE, 1234)
        assert ctx.identity == ALICE
        assert ctx.now() == 1234
        assert ctx.now() == 1234

    def test_custom_clock(self):
        ticks = iter([10, 20])
        ctx   = CallContext(ALICE, clock=lambda: next(ticks))
        assert (ctx.now(), ctx.now()) == (10, 20)

    def test_default_clock_is_integer(self):
        assert isinstance(CallContext(ALICE).now(), int)


class TestOperations:

    def test_scenario(self, contract):
        assert contract.interact(CallContext.fixed(ALICE, 100)) == 0
        assert contract.interact(CallContext.fixed(BOB, 200)) == 1
        assert contract.interact(CallContext.fixed(ALICE, 300)) == 2

        assert contract.total_interactions() == 3
        assert contract.get_all_users() == [ALICE, BOB, ALICE]
        assert contract.get_all_timestamps() == [100, 200, 300]
        assert contract.latest_interaction() == (ALICE, 300)

    def test_empty(self, contract):
        assert contract.total_interactions() == 0
        assert contract.get_all_users() == []
        assert contract.get_all_timestamps() == []
        assert contract.latest_interaction() == (ZERO_IDENTITY, 0)

    def test_interact_time_comes_from_context(self, contract):
        contract.interact(CallContext(ALICE, clock=lambda: 777))
        assert contract.latest_interaction() == (ALICE, 777)

    def test_interact_notifies(self):
        ledger   = InteractionLedger()
        recorder = RecordingObserver()
        ledger.subscribe(recorder)
        InteractionContract(ledger).interact(CallContext.fixed(ALICE, 5))
        assert [n.to_dict() for n in recorder.notices] == [
            {"user": ALICE, "timestamp": 5, "index": 0},
        ]


class TestDispatch:

    def test_operation_names(self):
        assert OPERATIONS == (
            "interact",
            "totalInteractions",
            "getAllUsers",
            "getAllTimestamps",
            "latestInteraction",
        )

    def test_call_each_operation(self, contract):
        assert contract.call("interact", CallContext.fixed(ALICE, 100)) == 0
        assert contract.call("totalInteractions") == 1
        assert contract.call("getAllUsers") == [ALICE]
        assert contract.call("getAllTimestamps") == [100]
        assert contract.call("latestInteraction") == (ALICE, 100)

    def test_interact_without_context(self, contract):
        with pytest.raises(ValueError):
            contract.call("interact")
        assert contract.total_interactions() == 0

    def test_unknown_operation(self, contract):
        with pytest.raises(UnknownOperationError) as exc_info:
            contract.call("deleteInteraction")
        assert "deleteInteraction" in str(exc_info.value)
