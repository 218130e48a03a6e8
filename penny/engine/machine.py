"""Rule-ordered state machine driving a single conversation turn.

Every state owns an ordered list of named rules. A rule inspects the turn and
answers with a directive:

* ``NO_MATCH`` - not applicable, try the next rule;
* ``Epsilon(state)`` - continue with ``state`` within the same turn;
* ``Transition(state)`` - store ``state`` and end the turn.

The first rule that does not answer ``NO_MATCH`` wins.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable

from loguru import logger

from penny.engine.calendar import local_now
from penny.engine.messages import MessageCatalog
from penny.models.schemas import Action, EphemeralFacts, ExpenseQuery, UserContext

INITIAL_STATE = "init"


@dataclass(frozen=True)
class NoMatch:
    pass


@dataclass(frozen=True)
class Epsilon:
    state: str
    tag: str | None = None


@dataclass(frozen=True)
class Transition:
    state: str
    tag: str | None = None


Directive = NoMatch | Epsilon | Transition

NO_MATCH = NoMatch()


class TransitionLoopError(RuntimeError):
    """Raised when epsilon transitions keep chaining past the configured cap."""


@dataclass
class Turn:
    """Everything a rule may read or write while resolving one turn."""

    facts: EphemeralFacts
    context: UserContext
    query_expenses: ExpenseQuery
    catalog: MessageCatalog
    clock: Callable[[], datetime] = local_now
    messages: list[str] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)

    def say(self, text: str) -> None:
        self.messages.append(text)

    def reply(self, key: str, **values) -> None:
        self.say(self.catalog.any(key, **values))

    def emit(self, action: Action) -> None:
        self.actions.append(action)


Rule = Callable[[Turn], Awaitable[Directive]]
RuleTable = dict[str, list[tuple[str, Rule]]]


def _label(directive: Epsilon | Transition) -> str:
    return f"{directive.state}:{directive.tag}" if directive.tag else directive.state


class StateMachine:
    def __init__(self, states: RuleTable, initial: str = INITIAL_STATE, max_transitions: int = 32):
        if initial not in states:
            raise ValueError(f"Initial state {initial!r} has no rules")
        self.states = states
        self.initial = initial
        self.max_transitions = max_transitions

    async def execute(self, state: str, turn: Turn) -> str:
        """Resolve ``state`` to the state the conversation rests in after this turn."""
        current = state
        for _ in range(self.max_transitions):
            rules = self.states.get(current)
            if rules is None:
                rules = self.states[self.initial]
            for name, rule in rules:
                logger.debug("SM trying {}.{}", current, name)
                directive = await rule(turn)

                if isinstance(directive, Epsilon):
                    logger.info("SM transitioning {}.{} -> {}!", current, name, _label(directive))
                    current = directive.state
                    break
                if isinstance(directive, Transition):
                    logger.info("SM transitioning {}.{} -> {}", current, name, _label(directive))
                    return directive.state
            else:
                logger.warning("SM is out of options in {}", current)
                return current

        raise TransitionLoopError(
            f"More than {self.max_transitions} epsilon transitions starting from {state!r}"
        )
