import asyncio
import weakref
from datetime import datetime

from loguru import logger

from penny.db.repository import LedgerRepository
from penny.engine.assistant import Assistant
from penny.engine.calendar import local_now
from penny.models.schemas import AddExpenseAction, Expense, Interval, Session, TurnResult, UserContext


class ConversationService:
    """Loads a user's context, runs a turn, applies its actions and stores the result.

    Turns for the same user are serialized; different users run concurrently.
    """

    def __init__(self, repo: LedgerRepository, assistant: Assistant, default_budget: float = 500):
        self.repo = repo
        self.assistant = assistant
        self.default_budget = default_budget
        # Entries vanish once no turn for that user is running or waiting.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _load_context(self, user_id: str, user_name: str) -> UserContext:
        context = self.repo.get_context(user_id)
        if context is None:
            logger.info("New conversation for user {}", user_id)
            context = UserContext(user_name=user_name, budget=self.default_budget)
        return context

    def _expense_query(self, user_id: str):
        async def query_expenses(interval: Interval) -> list[Expense]:
            return self.repo.query_expenses(user_id, interval)

        return query_expenses

    def _apply(self, user_id: str, result: TurnResult) -> None:
        for action in result.actions:
            if isinstance(action, AddExpenseAction):
                self.repo.add_expense(user_id, action)
                logger.info("Added expense for user {}: {} {}", user_id, action.item, action.value)

        if not result.context.is_active:
            self.repo.delete_user(user_id)
            logger.info("Deleted account of user {}", user_id)
        else:
            self.repo.save_context(user_id, result.context)

    async def handle(
        self,
        user_id: str,
        *,
        text: str | None = None,
        voice: bytes | None = None,
        user_name: str = "",
        timestamp: datetime | None = None,
    ) -> TurnResult:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()

        async with lock:
            session = Session(
                text=text,
                voice=voice,
                timestamp=timestamp or local_now(),
                context=self._load_context(user_id, user_name),
                query_expenses=self._expense_query(user_id),
            )
            result = await self.assistant.process(session)
            self._apply(user_id, result)
            return result

    async def handle_text(self, user_id: str, text: str, **kwargs) -> TurnResult:
        return await self.handle(user_id, text=text, **kwargs)

    async def handle_voice(self, user_id: str, voice: bytes, **kwargs) -> TurnResult:
        return await self.handle(user_id, voice=voice, **kwargs)
