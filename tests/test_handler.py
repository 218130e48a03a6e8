from types import SimpleNamespace

import pytest
from telegram.constants import ParseMode

from penny.bot import handler
from penny.bot.conversation import ConversationService
from penny.db.repository import LedgerRepository
from penny.engine.assistant import Assistant
from penny.engine.messages import MessageCatalog
from tests.factories import wit
from tests.mocks import NOW, FakeNlu, catalog_entries, clock


class FakeMessage:
    def __init__(self, text: str, chat_id: int = 42):
        self.text = text
        self.chat_id = chat_id
        self.date = NOW
        self.chat = SimpleNamespace(send_action=self.send_action)
        self.actions = []
        self.replies = []

    async def send_action(self, action):
        self.actions.append(action)

    async def reply_text(self, text, **kwargs):
        self.replies.append((text, kwargs))


def update_for(message: FakeMessage, first_name: str):
    user = SimpleNamespace(first_name=first_name, username=None)
    return SimpleNamespace(effective_message=message, effective_user=user)


@pytest.fixture
def nlu(monkeypatch, tmp_path):
    nlu = FakeNlu()
    assistant = Assistant(nlu, catalog=MessageCatalog(catalog_entries()), clock=clock)
    service = ConversationService(LedgerRepository(str(tmp_path / "ledger.json")), assistant, default_budget=400)
    monkeypatch.setattr(handler, "conversations", service)
    return nlu


@pytest.mark.asyncio
async def test_replies_are_sent_as_escaped_html(nlu):
    nlu.queue(wit())
    message = FakeMessage("  hello  ")

    await handler.handle_message(update_for(message, "<b>Ada</b> & co"), None)

    assert nlu.calls == [("text", "hello")]
    assert message.actions == ["typing"]
    assert message.replies == [
        ("hi &lt;b&gt;Ada&lt;/b&gt; &amp; co", {"parse_mode": ParseMode.HTML}),
        ("welcome", {"parse_mode": ParseMode.HTML}),
    ]


@pytest.mark.asyncio
async def test_failed_turn_sends_the_error_reply(nlu, monkeypatch):
    async def boom(*args, **kwargs):
        raise RuntimeError("wit is down")

    monkeypatch.setattr(handler.conversations, "handle_text", boom)
    message = FakeMessage("hello")

    await handler.handle_message(update_for(message, "Ada"), None)

    assert len(message.replies) == 1
    assert message.replies[0][1] == {}
