"""Turns a raw Wit.ai response into the facts the state machine reasons about."""

from datetime import datetime
from typing import Any

from loguru import logger

from penny.engine.calendar import end_of, start_of
from penny.models.schemas import EphemeralFacts, Interval, Money, Moment, Period

SENTIMENTS = ("negative", "neutral", "positive")


def with_defaults(raw: dict | None) -> dict:
    """Copy of ``raw`` with missing top-level collections filled in."""
    data = dict(raw or {})
    data["intents"] = data.get("intents") or []
    data["entities"] = data.get("entities") or {}
    data["traits"] = data.get("traits") or {}
    return data


def _trait(traits: dict, name: str) -> dict | None:
    # Wit reports each trait as a list of candidates; older payloads use a bare object.
    trait = traits.get(name)
    if isinstance(trait, list):
        trait = trait[0] if trait else None
    return trait if isinstance(trait, dict) else None


def _confidence(trait: dict) -> float:
    return float(trait.get("confidence") or 0)


def _parse_time(value: Any) -> tuple[datetime | None, str | None]:
    """Accept either an ISO string or a Wit ``{"value", "grain"}`` object."""
    grain = None
    if isinstance(value, dict):
        grain = value.get("grain")
        value = value.get("value")
    if not isinstance(value, str):
        return None, grain
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    # Naive values are read as server-local time; the ledger only holds aware datetimes.
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed, grain


def process_traits(raw: dict, facts: dict) -> None:
    traits = raw["traits"]
    greetings = _trait(traits, "wit$greetings")
    bye = _trait(traits, "wit$bye")

    facts["thanks"] = _trait(traits, "wit$thanks") is not None
    facts["greetings"] = greetings is not None
    facts["bye"] = bye is not None

    if greetings is not None and bye is not None:
        if _confidence(greetings) > _confidence(bye):
            facts["bye"] = False
        else:
            facts["greetings"] = False

    sentiment = _trait(traits, "wit$sentiment")
    if sentiment is not None and sentiment.get("value") in SENTIMENTS:
        facts["sentiment"] = sentiment["value"]


def process_intents(raw: dict, facts: dict) -> None:
    names = [i.get("name") or "" for i in raw["intents"] if isinstance(i, dict)]
    facts["intent"] = names[0] if names else ""


def _money(entity: dict) -> Money:
    return Money(body=str(entity.get("body") or ""), value=float(entity["value"]))


def _interval(entity: dict) -> Period | None:
    start, start_grain = _parse_time(entity.get("from"))
    end, end_grain = _parse_time(entity.get("to"))
    grain = entity.get("grain") or start_grain or end_grain or "day"

    if start is None and end is None:
        return None
    if start is None:
        start = start_of(end, end_grain or grain)
    if end is None:
        end = end_of(start, start_grain or grain)
    return Period(grain=grain, value=Interval(start=start, end=end))


def process_entities(raw: dict, facts: dict) -> None:
    entities = []
    for group in raw["entities"].values():
        entities.extend(e for e in group if isinstance(e, dict))

    for entity in entities:
        name = entity.get("name")
        kind = entity.get("type")
        try:
            if name == "item":
                if kind == "value":
                    facts["item"] = str(entity["value"])
            elif name == "wit$amount_of_money":
                if kind == "value":
                    facts["money"] = _money(entity)
            elif name == "wit$number":
                if kind == "value" and "money" not in facts:
                    facts["money"] = _money(entity)
            elif name == "wit$datetime":
                if kind == "value":
                    value, _ = _parse_time(entity.get("value"))
                    if value is not None:
                        facts["moment"] = Moment(grain=entity.get("grain") or "day", value=value)
                elif kind == "interval":
                    interval = _interval(entity)
                    if interval is not None:
                        facts["interval"] = interval
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed {} entity: {}", name, e)


def normalize(raw: dict | None) -> EphemeralFacts:
    data = with_defaults(raw)
    facts: dict = {}

    process_traits(data, facts)
    process_intents(data, facts)
    process_entities(data, facts)

    return EphemeralFacts(**facts)
