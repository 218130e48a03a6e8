from datetime import timedelta

from penny.engine.calendar import format_date, format_total, format_usd, grain_bounds
from penny.engine.machine import (
    NO_MATCH,
    Directive,
    Epsilon,
    Rule,
    RuleTable,
    Transition,
    Turn,
)
from penny.models.schemas import AddExpenseAction, Interval


def on_intent(intent: str, rule: Rule) -> Rule:
    """Only run ``rule`` when the utterance carries ``intent``."""

    async def guarded(turn: Turn) -> Directive:
        if turn.facts.intent != intent:
            return NO_MATCH
        return await rule(turn)

    return guarded


def this_week(turn: Turn) -> Interval:
    start, end = grain_bounds(turn.clock(), "week")
    return Interval(start=start, end=end)


async def weekly_spending(turn: Turn) -> float:
    expenses = await turn.query_expenses(this_week(turn))
    return sum(e.value for e in expenses)


def say_hi(turn: Turn) -> None:
    if turn.context.user_name:
        turn.reply("personal_greeting", name=turn.context.user_name)
    else:
        turn.reply("generic_greeting")
    turn.context.last_greeting_on = turn.clock()


def say_joke(turn: Turn) -> None:
    ctx = turn.context
    turn.say(turn.catalog.get("joke", ctx.joke_counter, fallback=turn.catalog.any("done_joking")))
    ctx.joke_counter = min(ctx.joke_counter + 1, turn.catalog.count("joke"))
    ctx.last_joke_on = turn.clock()


# init


async def first_interaction(turn: Turn) -> Directive:
    say_hi(turn)
    turn.reply("welcome")
    return Epsilon("main")


# main


async def request_help(turn: Turn) -> Directive:
    turn.reply("help")
    return Transition("main")


async def tell_joke(turn: Turn) -> Directive:
    say_joke(turn)
    return Transition("main")


async def who_are_you(turn: Turn) -> Directive:
    turn.reply("introduction")
    return Transition("main")


async def are_you_bot(turn: Turn) -> Directive:
    turn.reply("bot")
    return Transition("main")


async def delete_account(turn: Turn) -> Directive:
    turn.reply("delete_account_confirmation")
    return Transition("delete_account")


async def set_budget(turn: Turn) -> Directive:
    return Epsilon("set_budget")


async def query_budget(turn: Turn) -> Directive:
    budget = turn.context.budget
    spent = await weekly_spending(turn)
    turn.reply("query_budget", value=format_usd(budget), balance=format_usd(budget - spent))
    return Transition("main")


async def query_affordability(turn: Turn) -> Directive:
    money = turn.facts.money
    if money is None:
        turn.reply("specify_affordability_value")
        return Transition("main")

    spent = await weekly_spending(turn)
    balance = turn.context.budget - spent - money.value
    turn.reply("query_affordability", value=format_usd(money.value), balance=format_usd(balance))
    return Transition("main")


async def start_expense(turn: Turn) -> Directive:
    ctx, facts = turn.context, turn.facts
    ctx.current_expense_item = None
    ctx.current_expense_value = None
    ctx.current_expense_incurred_on = None

    if not (facts.item or facts.money or facts.moment or facts.interval):
        turn.reply("add_expense")

    return Epsilon("add_expense")


def summary_interval(turn: Turn) -> Interval:
    facts = turn.facts
    if facts.interval is not None:
        return facts.interval.value
    if facts.moment is not None:
        start, end = grain_bounds(facts.moment.value, facts.moment.grain)
        return Interval(start=start, end=end)
    return this_week(turn)


async def query_summary(turn: Turn) -> Directive:
    interval = summary_interval(turn)
    bounds = {"start": format_date(interval.start), "end": format_date(interval.end)}

    expenses = await turn.query_expenses(interval)
    if not expenses:
        turn.reply("no_expenses", **bounds)
        return Transition("main")

    turn.reply("expense_summary", **bounds)
    turn.say(
        "\n\n".join(
            f"{format_date(e.incurred_on)}: {e.item}, {format_usd(e.value)}" for e in expenses
        )
    )
    turn.reply("expense_total", value=format_total(sum(e.value for e in expenses)))
    return Transition("main")


async def confused(turn: Turn) -> Directive:
    facts = turn.facts
    if not turn.messages:
        if facts.thanks:
            turn.reply("thanks")
        elif facts.greetings:
            turn.reply("hi")
            turn.context.last_greeting_on = turn.clock()
        elif facts.bye:
            turn.reply("bye", name=turn.context.user_name)
        else:
            turn.reply("confused")

    return Transition("main")


# delete_account


def confirmation(timeout: timedelta) -> Rule:
    async def confirm_deletion(turn: Turn) -> Directive:
        if turn.clock() - turn.context.last_message_on > timeout:
            return Transition("main", "timeout")

        if turn.facts.intent == "feedback_positive":
            turn.context.is_active = False
            turn.reply("account_deletion_confirmed")
            return Transition("main", "positive")

        if turn.facts.intent == "feedback_negative":
            turn.reply("account_deletion_canceled")
            return Transition("main", "negative")

        turn.reply("confused")
        return NO_MATCH

    return confirm_deletion


# set_budget


async def update_budget(turn: Turn) -> Directive:
    money = turn.facts.money
    if money is None:
        turn.reply("specify_budget")
        return NO_MATCH

    turn.context.budget = money.value
    turn.reply("setting_budget", value=format_usd(money.value))
    return Transition("main")


# add_expense


async def fill_expense(turn: Turn) -> Directive:
    ctx, facts = turn.context, turn.facts

    if facts.item and not ctx.current_expense_item:
        ctx.current_expense_item = facts.item

    if ctx.current_expense_incurred_on is None:
        if facts.moment is not None:
            ctx.current_expense_incurred_on = facts.moment.value
        elif facts.interval is not None:
            ctx.current_expense_incurred_on = facts.interval.value.start

    if facts.money is not None and ctx.current_expense_value is None:
        ctx.current_expense_value = facts.money.value

    if not ctx.current_expense_item:
        return Epsilon("specify_expense_item")
    if ctx.current_expense_incurred_on is None:
        return Epsilon("specify_expense_moment")
    if ctx.current_expense_value is None:
        return Epsilon("specify_expense_value")

    turn.emit(
        AddExpenseAction(
            item=ctx.current_expense_item,
            value=ctx.current_expense_value,
            incurred_on=ctx.current_expense_incurred_on,
        )
    )
    turn.reply(
        "expense_completed",
        item=ctx.current_expense_item,
        value=format_usd(ctx.current_expense_value),
        moment=format_date(ctx.current_expense_incurred_on),
    )
    return Transition("main", "expense_added")


async def specify_expense_item(turn: Turn) -> Directive:
    if not turn.facts.item:
        turn.reply("specify_expense_item")
        return NO_MATCH

    turn.context.current_expense_item = turn.facts.item
    return Epsilon("add_expense", "item_specified")


async def specify_expense_moment(turn: Turn) -> Directive:
    facts = turn.facts
    if facts.moment is not None:
        turn.context.current_expense_incurred_on = facts.moment.value
    elif facts.interval is not None:
        turn.context.current_expense_incurred_on = facts.interval.value.start
    else:
        turn.reply("specify_expense_moment")
        return NO_MATCH

    return Epsilon("add_expense", "moment_specified")


async def specify_expense_value(turn: Turn) -> Directive:
    if turn.facts.money is None:
        turn.reply("specify_expense_value")
        return NO_MATCH

    turn.context.current_expense_value = turn.facts.money.value
    return Epsilon("add_expense", "value_specified")


def build_states(confirmation_timeout_minutes: float = 3) -> RuleTable:
    main_intents = [
        ("request_help", request_help),
        ("tell_joke", tell_joke),
        ("who_are_you", who_are_you),
        ("are_you_bot", are_you_bot),
        ("delete_account", delete_account),
        ("set_budget", set_budget),
        ("query_budget", query_budget),
        ("query_affordability", query_affordability),
        ("add_expense", start_expense),
        ("query_summary", query_summary),
    ]

    return {
        "init": [("first_interaction", first_interaction)],
        "main": [(name, on_intent(name, rule)) for name, rule in main_intents]
        + [("confused", confused)],
        "delete_account": [
            ("confirmation", confirmation(timedelta(minutes=confirmation_timeout_minutes))),
        ],
        "set_budget": [("set_budget", update_budget)],
        "add_expense": [("add_expense", fill_expense)],
        "specify_expense_item": [("specify_expense_item", specify_expense_item)],
        "specify_expense_moment": [("specify_expense_moment", specify_expense_moment)],
        "specify_expense_value": [("specify_expense_value", specify_expense_value)],
    }
