"""
Payment ledger: which payments count, when a sale is paid, and the admin
transitions that move a payment out of Pending.
"""
import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from backend_renting.exceptions import InvalidState
from .models import Payment, Sale

logger = logging.getLogger(__name__)

VERIFIABLE_STATUSES = ('Completed', 'Failed')


def payment_epsilon():
    return Decimal(str(getattr(settings, 'PAYMENT_EPSILON', '0.01')))


def is_paid(verified_total, total_amount, epsilon=None):
    epsilon = payment_epsilon() if epsilon is None else epsilon
    return Decimal(verified_total) + epsilon >= Decimal(total_amount)


def derive_payment_status(verified_total, total_amount, epsilon=None):
    if is_paid(verified_total, total_amount, epsilon):
        return 'paid'
    if Decimal(verified_total) > 0:
        return 'partial'
    return 'unpaid'


def verified_total(sale):
    """Sum of admin-verified, completed payments for a sale."""
    total = sale.payments.filter(
        payment_status='Completed', verified_by_admin=True,
    ).aggregate(total=Sum('amount_paid'))['total']
    return total or Decimal('0')


def refresh_payment_status(sale):
    """
    Re-derive sale.payment_status from its verified payments. A paid sale
    keeps an up to date revenue recognition row; one that stops being paid
    loses it. Returns True when the sale flips to paid.
    """
    from finances.revenue import recognize_sale_revenue, withdraw_sale_revenue

    previous = sale.payment_status
    sale.payment_status = derive_payment_status(verified_total(sale), sale.total_amount)
    if sale.payment_status != previous:
        sale.save(update_fields=['payment_status'])
        logger.info(f"Sale {sale.id} payment status {previous} -> {sale.payment_status}")

    if sale.payment_status == 'paid':
        recognize_sale_revenue(sale)
    elif previous == 'paid':
        withdraw_sale_revenue(sale)
    return sale.payment_status == 'paid' and previous != 'paid'


def _require_admin(user):
    if not getattr(user, 'is_admin', False):
        logger.warning(f"Non-admin {user.username} attempted a payment transition")
        raise PermissionDenied("Only admins can change a payment's status.")


def _lock_payment(sale_id, payment_id, company):
    try:
        sale = Sale.objects.select_for_update(of=('self',)).get(
            pk=sale_id, vehicle__company=company)
    except Sale.DoesNotExist:
        raise NotFound("Sale not found.")
    try:
        payment = Payment.objects.select_for_update().get(pk=payment_id, sale=sale)
    except Payment.DoesNotExist:
        raise NotFound("Payment not found.")
    return sale, payment


def verify_payment(sale_id, payment_id, user, new_status, remark=None):
    """
    Admin confirmation that a payment was (or was not) received.

    The payment update, the sale's payment status and, once the sale is paid,
    its revenue recognition row all commit in one transaction.
    """
    _require_admin(user)
    if new_status not in VERIFIABLE_STATUSES:
        raise ValidationError(
            {"status": f"Status must be one of {', '.join(VERIFIABLE_STATUSES)}."})

    with transaction.atomic():
        sale, payment = _lock_payment(sale_id, payment_id, user.company)
        if payment.payment_status != 'Pending':
            raise InvalidState(
                f"Payment is already {payment.payment_status}; only pending payments can be verified.")

        payment.payment_status = new_status
        payment.verified_by_admin = True
        payment.verified_by = user
        payment.verified_at = timezone.now()
        if remark is not None:
            payment.remark = remark
        payment.save()

        refresh_payment_status(sale)

    logger.info(f"Payment {payment.id} on sale {sale.id} verified as {new_status} by {user.username}")
    return sale, payment


def cancel_payment(sale_id, payment_id, user, remark=None):
    _require_admin(user)
    with transaction.atomic():
        sale, payment = _lock_payment(sale_id, payment_id, user.company)
        if payment.payment_status != 'Pending':
            raise InvalidState(
                f"Payment is {payment.payment_status}; only pending payments can be cancelled.")
        payment.payment_status = 'Cancelled'
        if remark is not None:
            payment.remark = remark
        payment.save(update_fields=['payment_status', 'remark', 'updated_at'])

    logger.info(f"Payment {payment.id} on sale {sale.id} cancelled by {user.username}")
    return sale, payment
