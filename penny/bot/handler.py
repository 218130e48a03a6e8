import html

from loguru import logger
from telegram import Update
from telegram.constants import ParseMode
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from penny.config import get_settings
from penny.deps import conversations
from penny.engine.messages import MessageCatalog

settings = get_settings()
catalog = MessageCatalog()


def _user_name(update: Update) -> str:
    user = update.effective_user
    if user is None:
        return ""
    return user.first_name or user.username or ""


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start and /help."""
    await update.effective_message.reply_text(catalog.any("help"))


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Run a text message through the conversation and send every reply."""
    message = update.effective_message
    logger.info("Telegram message from {}: {}", message.chat_id, message.text)

    await message.chat.send_action("typing")

    try:
        result = await conversations.handle_text(
            str(message.chat_id),
            message.text.strip(),
            user_name=_user_name(update),
            timestamp=message.date,
        )
    except Exception as e:
        logger.error("Error processing message: {}", e)
        await message.reply_text(catalog.any("error"))
        return

    for reply in result.messages:
        # Replies carry no markup of their own; escape user-supplied names and items.
        await message.reply_text(html.escape(reply), parse_mode=ParseMode.HTML)


async def handle_voice(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Voice notes arrive as OGG, which Wit can't reliably transcribe."""
    logger.warning("Declining voice message from {}", update.effective_message.chat_id)
    await update.effective_message.reply_text(catalog.any("voice_not_supported"))


async def handle_unsupported(update: Update, context: ContextTypes.DEFAULT_TYPE):
    logger.warning("Message type is not supported")
    await update.effective_message.reply_text(catalog.any("message_type_not_supported"))


def build_bot_app() -> Application:
    """Build and return the Telegram bot application."""
    app = Application.builder().token(settings.telegram_bot_token).build()

    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("help", start_command))

    app.add_handler(MessageHandler(filters.VOICE, handle_voice))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))
    app.add_handler(MessageHandler(~filters.TEXT & ~filters.COMMAND, handle_unsupported))

    return app
