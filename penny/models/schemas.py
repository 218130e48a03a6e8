from datetime import datetime, timezone
from typing import Awaitable, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field

from penny.engine.calendar import local_now

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


class Interval(BaseModel):
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class UserContext(BaseModel):
    """Durable per-user conversation state, carried across turns."""

    state: str = "init"
    is_active: bool = True
    user_name: str = ""
    last_message_on: datetime = Field(default_factory=local_now)
    last_greeting_on: datetime = EPOCH
    last_joke_on: datetime = EPOCH
    message_counter: int = 0
    joke_counter: int = 0
    budget: float = 500
    current_expense_item: str | None = None
    current_expense_value: float | None = None
    current_expense_incurred_on: datetime | None = None


class Money(BaseModel):
    model_config = ConfigDict(frozen=True)

    body: str = ""
    value: float


class Moment(BaseModel):
    model_config = ConfigDict(frozen=True)

    grain: str = "day"
    value: datetime


class Period(BaseModel):
    model_config = ConfigDict(frozen=True)

    grain: str = "day"
    value: Interval


class EphemeralFacts(BaseModel):
    """What the NLU service understood from a single utterance.

    Rebuilt on every turn and never persisted.
    """

    model_config = ConfigDict(frozen=True)

    greetings: bool = False
    bye: bool = False
    thanks: bool = False
    sentiment: Literal["negative", "neutral", "positive"] = "neutral"
    intent: str = ""
    item: str | None = None
    money: Money | None = None
    moment: Moment | None = None
    interval: Period | None = None


class Expense(BaseModel):
    item: str
    value: float
    incurred_on: datetime


class AddExpenseAction(Expense):
    type: Literal["add_expense"] = "add_expense"


Action = AddExpenseAction

ExpenseQuery = Callable[[Interval], Awaitable[list[Expense]]]


class Session(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    text: str | None = None
    voice: bytes | None = None
    timestamp: datetime = Field(default_factory=local_now)
    context: UserContext
    query_expenses: ExpenseQuery


class TurnResult(BaseModel):
    context: UserContext
    messages: list[str] = []
    actions: list[Action] = []
    raw_nlu: dict = {}


class MessageRequest(BaseModel):
    text: str = Field(min_length=1)
    user_name: str = ""
