from penny.bot.conversation import ConversationService
from penny.config import get_settings
from penny.db.repository import LedgerRepository
from penny.engine.assistant import Assistant
from penny.engine.machine import StateMachine
from penny.engine.rules import build_states
from penny.nlu.client import WitClient

settings = get_settings()

repo = LedgerRepository(settings.db_path)
nlu = WitClient(
    token=settings.wit_access_token,
    url=settings.wit_url,
    version=settings.wit_api_version,
)
machine = StateMachine(
    build_states(settings.confirmation_timeout_minutes),
    max_transitions=settings.max_transitions,
)
assistant = Assistant(nlu, machine=machine)
conversations = ConversationService(repo, assistant, default_budget=settings.default_budget)
