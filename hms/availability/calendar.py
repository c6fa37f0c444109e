from datetime import date, datetime, timedelta

ONE_DAY = timedelta(days=1)


def to_day(value) -> date:
    """Truncate a date, datetime or ISO-8601 string to its calendar day."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        return value.date()
    return value


def nights_in_range(check_in, check_out) -> list[date]:
    """Nights of the stay [check_in, check_out); empty when check_out <= check_in."""
    current = to_day(check_in)
    end = to_day(check_out)
    nights = []
    while current < end:
        nights.append(current)
        current += ONE_DAY
    return nights
