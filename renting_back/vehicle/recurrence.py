"""Due date arithmetic for recurring vehicle reminders."""
from datetime import timedelta

from dateutil.relativedelta import relativedelta
from rest_framework.exceptions import ValidationError


def validate_schedule(frequency, custom_interval=None):
    if frequency == 'custom':
        if custom_interval is None or int(custom_interval) <= 0:
            raise ValidationError(
                {"custom_interval": "A positive custom_interval (days) is required for custom frequency."})
    elif frequency not in ('monthly', 'yearly'):
        raise ValidationError({"frequency": f"Unsupported frequency '{frequency}'."})


def calculate_next_due_date(from_date, frequency, custom_interval=None):
    """
    Next occurrence after ``from_date``.

    Months and years are calendar based, so Jan 31 + 1 month is the last day
    of February. Custom intervals are a plain number of days.
    """
    validate_schedule(frequency, custom_interval)
    if frequency == 'monthly':
        return from_date + relativedelta(months=1)
    if frequency == 'yearly':
        return from_date + relativedelta(years=1)
    return from_date + timedelta(days=int(custom_interval))


def initial_next_due_date(start_date, frequency, custom_interval=None, supplied=None):
    """
    A supplied next_due_date that differs from start_date is kept as given;
    otherwise the first occurrence is computed from start_date.
    """
    validate_schedule(frequency, custom_interval)
    if supplied is not None and supplied != start_date:
        return supplied
    return calculate_next_due_date(start_date, frequency, custom_interval)


def is_due(next_due_date, today):
    if hasattr(next_due_date, 'date'):
        next_due_date = next_due_date.date()
    return next_due_date <= today
