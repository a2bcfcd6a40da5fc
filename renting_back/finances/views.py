# finances/views.py
from decimal import Decimal

from rest_framework import viewsets
from rest_framework.generics import ListAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView
from django.db.models import DecimalField, ExpressionWrapper, F, Q, Sum, Value
from django.db.models.functions import Coalesce
import logging

from backend_renting.mixins import EnvelopeMixin
from backend_renting.permissions import RolePermission
from backend_renting.responses import api_response
from sales.models import Sale
from .filters import ExpenseFilter, StatementFilter
from .models import Expense
from .revenue import revenue_report
from .serializers import ExpenseSerializer, StatementSerializer, RevenueQuerySerializer

logger = logging.getLogger(__name__)

MONEY = DecimalField(max_digits=12, decimal_places=2)


class ExpenseViewSet(EnvelopeMixin, viewsets.ModelViewSet):
    serializer_class = ExpenseSerializer
    permission_classes = [IsAuthenticated, RolePermission]
    allowed_roles = ['admin', 'accountant']
    filterset_class = ExpenseFilter

    def get_queryset(self):
        return Expense.objects.filter(
            company=self.request.user.company).select_related('vehicle', 'recorded_by')

    def perform_create(self, serializer):
        expense = serializer.save(
            company=self.request.user.company, recorded_by=self.request.user)
        logger.info(f"Expense {expense.expense_type} {expense.amount} recorded by {self.request.user.username}")

    def perform_destroy(self, instance):
        logger.info(f"Expense {instance.id} deleted by {self.request.user.username}")
        instance.delete()


class StatementView(ListAPIView):
    """Per sale totals: what is owed, what has been verified as paid, what is left."""
    serializer_class = StatementSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = StatementFilter

    def get_queryset(self):
        paid = Coalesce(
            Sum('payments__amount_paid',
                filter=Q(payments__payment_status='Completed', payments__verified_by_admin=True)),
            Value(Decimal('0')),
            output_field=MONEY,
        )
        return (
            Sale.objects.filter(vehicle__company=self.request.user.company)
            .exclude(status='cancelled')
            .select_related('vehicle')
            .annotate(amount_paid=paid)
            .annotate(balance=ExpressionWrapper(F('total_amount') - F('amount_paid'), output_field=MONEY))
            .order_by('-date_of_delivery')
        )


class RevenueView(APIView):
    permission_classes = [IsAuthenticated, RolePermission]
    read_roles = ['admin', 'accountant']

    def get(self, request):
        query = RevenueQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data
        report = revenue_report(
            request.user.company,
            period=params['period'],
            ref=params.get('date') or None,
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
            recognize_at=params['recognize_at'],
        )
        return api_response(report)
