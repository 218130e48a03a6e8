"""Shared fixtures.

The NLU service is replaced by ``FakeNlu`` which replays scripted Wit payloads,
and the catalog uses one fixed template per key so replies can be asserted.
"""

import os
import tempfile
from pathlib import Path

import pytest

# penny.deps opens the ledger at import time; keep it out of the working tree.
os.environ.setdefault("DB_PATH", str(Path(tempfile.gettempdir()) / "penny-test-ledger.json"))

from penny.engine.machine import StateMachine, Turn  # noqa: E402
from penny.engine.messages import MessageCatalog  # noqa: E402
from penny.engine.rules import build_states  # noqa: E402
from penny.models.schemas import EphemeralFacts, UserContext  # noqa: E402
from tests.mocks import NOW, FakeLedger, catalog_entries, clock  # noqa: E402


@pytest.fixture
def catalog():
    return MessageCatalog(catalog_entries())


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def machine():
    return StateMachine(build_states())


@pytest.fixture
def make_turn(catalog, ledger):
    def _make(context: UserContext | None = None, **facts) -> Turn:
        return Turn(
            facts=EphemeralFacts(**facts),
            context=context or UserContext(last_message_on=NOW),
            query_expenses=ledger.query,
            catalog=catalog,
            clock=clock,
        )

    return _make
