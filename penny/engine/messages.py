import random

MESSAGES: dict[str, list[str]] = {
    "generic_greeting": [
        "Hi there!",
        "Hello!",
    ],
    "personal_greeting": [
        "Hi {name}!",
        "Hello {name}, nice to meet you!",
    ],
    "welcome": [
        "I'm Penny, your personal expense assistant. Tell me what you spent and "
        "I'll keep track of it, or ask me how much of your budget is left.",
    ],
    "help": [
        "Here's what I can do:\n\n"
        "• Log an expense: \"I spent $12 on lunch today\"\n"
        "• Set your weekly budget: \"Set my budget to $400\"\n"
        "• Check your budget: \"How much do I have left?\"\n"
        "• Check if you can afford something: \"Can I afford $80?\"\n"
        "• See a summary: \"What did I spend last month?\"",
    ],
    "introduction": [
        "I'm Penny. I keep an eye on your spending so you don't have to.",
        "My name is Penny. I help you track expenses and stick to your budget.",
    ],
    "bot": [
        "Yes, I'm a bot. A very frugal one.",
        "I am indeed a bot, but I'm good with numbers.",
    ],
    "joke": [
        "Why did the banker switch careers? She lost interest.",
        "I told my wallet a joke. It didn't laugh, it was too empty.",
        "What's the best way to double your money? Fold it in half.",
        "Why don't budgets ever win arguments? They always come up short.",
    ],
    "done_joking": [
        "I'm all out of jokes. Let's talk about your expenses instead.",
    ],
    "delete_account_confirmation": [
        "Are you sure you want to delete your account? All your expenses will be "
        "removed. Please answer yes or no.",
    ],
    "account_deletion_confirmed": [
        "Your account has been deleted. Goodbye!",
    ],
    "account_deletion_canceled": [
        "Phew! Your account stays as it is.",
    ],
    "specify_budget": [
        "How much would you like your weekly budget to be?",
    ],
    "setting_budget": [
        "Done! Your weekly budget is now {value}.",
    ],
    "query_budget": [
        "Your weekly budget is {value}. You have {balance} left this week.",
    ],
    "specify_affordability_value": [
        "How much would it cost?",
    ],
    "query_affordability": [
        "After spending {value} you would have {balance} left this week.",
    ],
    "add_expense": [
        "Sure, let's add an expense.",
    ],
    "specify_expense_item": [
        "What did you spend the money on?",
    ],
    "specify_expense_moment": [
        "When did you buy it?",
    ],
    "specify_expense_value": [
        "How much did it cost?",
    ],
    "expense_completed": [
        "Got it! I've added {item} for {value} on {moment}.",
    ],
    "no_expenses": [
        "You have no expenses between {start} and {end}.",
    ],
    "expense_summary": [
        "Here are your expenses between {start} and {end}:",
    ],
    "expense_total": [
        "That's {value} in total.",
    ],
    "thanks": [
        "You're welcome!",
        "Any time!",
    ],
    "hi": [
        "Hi again!",
        "Hello! What can I do for you?",
    ],
    "bye": [
        "Bye {name}!",
        "See you later, {name}!",
    ],
    "confused": [
        "Sorry, I didn't get that. Type \"help\" to see what I can do.",
        "Hmm, I'm not sure what you mean.",
    ],
    "voice_not_supported": [
        "Sorry, I can't listen to voice messages yet. Could you type it out instead?",
    ],
    "message_type_not_supported": [
        "Sorry, I can only read text messages.",
    ],
    "error": [
        "Something went wrong. Please try again.",
    ],
}


class MessageCatalog:
    """Reply strings by key, each with one or more interchangeable variants."""

    def __init__(self, entries: dict[str, list[str]] | None = None, rng: random.Random | None = None):
        self.entries = MESSAGES if entries is None else entries
        self.rng = rng or random.Random()

    def _variants(self, key: str) -> list[str]:
        variants = self.entries.get(key)
        if not variants:
            raise KeyError(f"No messages for key: {key}")
        return variants

    def count(self, key: str) -> int:
        return len(self.entries.get(key) or [])

    def any(self, key: str, **values) -> str:
        """A randomly chosen variant with ``{var}`` placeholders filled in."""
        return self.rng.choice(self._variants(key)).format(**values)

    def get(self, key: str, index: int, fallback: str, **values) -> str:
        variants = self.entries.get(key) or []
        if 0 <= index < len(variants):
            return variants[index].format(**values)
        return fallback
