from datetime import datetime
from typing import Callable

from loguru import logger

from penny.engine.calendar import local_now
from penny.engine.machine import StateMachine, Turn
from penny.engine.messages import MessageCatalog
from penny.engine.rules import build_states
from penny.nlu.client import NluClient
from penny.nlu.normalizer import normalize, with_defaults
from penny.models.schemas import Session, TurnResult


class SessionInputError(ValueError):
    """A session must carry exactly one of text or voice input."""


class Assistant:
    """Runs one conversation turn: NLU, normalization, then the state machine."""

    def __init__(
        self,
        nlu: NluClient,
        catalog: MessageCatalog | None = None,
        machine: StateMachine | None = None,
        clock: Callable[[], datetime] = local_now,
    ):
        self.nlu = nlu
        self.catalog = catalog or MessageCatalog()
        self.machine = machine or StateMachine(build_states())
        self.clock = clock

    async def _query_nlu(self, session: Session) -> dict:
        if session.text:
            return await self.nlu.query_text(session.text, session.timestamp)
        return await self.nlu.query_voice(session.voice, session.timestamp)

    async def process(self, session: Session) -> TurnResult:
        has_text = bool(session.text)
        has_voice = bool(session.voice)
        if has_text == has_voice:
            raise SessionInputError("Either text or voice must be given, but not both")

        context = session.context.model_copy(deep=True)

        raw = with_defaults(await self._query_nlu(session))
        facts = normalize(raw)
        logger.debug("Facts: {}", facts)

        turn = Turn(
            facts=facts,
            context=context,
            query_expenses=session.query_expenses,
            catalog=self.catalog,
            clock=self.clock,
        )

        logger.info("SM starts with {}", context.state)
        context.state = await self.machine.execute(context.state, turn)
        logger.info("SM ends with {}", context.state)

        context.message_counter += 1
        context.last_message_on = self.clock()

        return TurnResult(
            context=context,
            messages=turn.messages,
            actions=turn.actions,
            raw_nlu=raw,
        )
