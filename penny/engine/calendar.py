from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

GRAINS = ("second", "minute", "hour", "day", "week", "month", "quarter", "year")


def local_now() -> datetime:
    """Current time as an aware datetime in the server's local zone."""
    return datetime.now().astimezone()


def start_of(moment: datetime, grain: str) -> datetime:
    if grain == "second":
        return moment.replace(microsecond=0)
    if grain == "minute":
        return moment.replace(second=0, microsecond=0)
    if grain == "hour":
        return moment.replace(minute=0, second=0, microsecond=0)

    day = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    if grain == "week":
        return day - timedelta(days=day.weekday())
    if grain == "month":
        return day.replace(day=1)
    if grain == "quarter":
        return day.replace(month=(day.month - 1) // 3 * 3 + 1, day=1)
    if grain == "year":
        return day.replace(month=1, day=1)
    return day


def end_of(moment: datetime, grain: str) -> datetime:
    """Last microsecond of the grain containing ``moment``."""
    steps = {
        "second": relativedelta(seconds=1),
        "minute": relativedelta(minutes=1),
        "hour": relativedelta(hours=1),
        "week": relativedelta(weeks=1),
        "month": relativedelta(months=1),
        "quarter": relativedelta(months=3),
        "year": relativedelta(years=1),
    }
    step = steps.get(grain, relativedelta(days=1))
    return start_of(moment, grain) + step - relativedelta(microseconds=1)


def grain_bounds(moment: datetime, grain: str) -> tuple[datetime, datetime]:
    return start_of(moment, grain), end_of(moment, grain)


def format_date(moment: datetime) -> str:
    """Long date, e.g. 'June 15, 2020'."""
    return f"{moment:%B} {moment.day}, {moment.year}"


def format_usd(amount: float) -> str:
    if amount == int(amount):
        return f"${int(amount)}"
    return f"${amount:.2f}"


def format_total(amount: float) -> str:
    return "$" + f"{amount:.2f}".replace(".00", "")
