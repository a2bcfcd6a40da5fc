import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from .models import Reminder, ReminderAcknowledgement
from .recurrence import calculate_next_due_date

logger = logging.getLogger(__name__)


def get_company_reminder(reminder_id, company, for_update=False):
    queryset = Reminder.objects.all()
    if for_update:
        queryset = queryset.select_for_update(of=('self',))
    try:
        return queryset.get(pk=reminder_id, vehicle__company=company)
    except Reminder.DoesNotExist:
        raise NotFound("Reminder not found.")


@transaction.atomic
def acknowledge_reminder(reminder_id, user, company, acknowledged_at=None):
    """
    Record an acknowledgement and rebase the reminder onto it.

    The acknowledgement row and the rebased due date commit together.
    """
    reminder = get_company_reminder(reminder_id, company, for_update=True)
    acknowledged_at = acknowledged_at or timezone.now()

    acknowledgement = ReminderAcknowledgement.objects.create(
        reminder=reminder, user=user, acknowledged_at=acknowledged_at)

    reminder.start_date = acknowledged_at
    reminder.next_due_date = calculate_next_due_date(
        acknowledged_at, reminder.frequency, reminder.custom_interval)
    reminder.save(update_fields=['start_date', 'next_due_date', 'updated_at'])

    logger.info(
        f"Reminder {reminder.id} acknowledged by {user.username}, next due {reminder.next_due_date:%Y-%m-%d}")
    return reminder, acknowledgement


def due_reminders(company, today=None, reminder_type=None):
    today = today or timezone.now().date()
    queryset = Reminder.objects.select_related('vehicle').filter(
        vehicle__company=company, next_due_date__date__lte=today)
    if reminder_type:
        queryset = queryset.filter(reminder_type=reminder_type)
    return queryset.order_by('next_due_date')
