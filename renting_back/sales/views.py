# sales/views.py
from rest_framework import mixins, viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView
from django.db.models import Count
from django.db.models.functions import TruncMonth
from django.shortcuts import get_object_or_404
from django.utils import timezone
from dateutil.relativedelta import relativedelta
from datetime import datetime
import logging

from backend_renting.responses import api_response
from vehicle.models import Vehicle
from . import ledger, services
from .availability import disabled_dates
from .filters import SaleFilter
from .models import Sale, CHARGE_TYPES
from .patch import SalePatch
from .serializers import (
    SaleSerializer, SaleCreateSerializer, DeliverySerializer, ReturnSerializer,
    CancelSerializer, ChargeInputSerializer, PaymentSerializer, PaymentInputSerializer,
    PaymentVerificationSerializer, PaymentCancelSerializer,
)

logger = logging.getLogger(__name__)

INCLUDE_OPTIONS = frozenset({'payments', 'charges', 'vehicle', 'media', 'usage'})
DETAIL_INCLUDE = ('payments', 'charges', 'vehicle', 'media', 'usage')


def parse_include(raw):
    if not raw:
        return ()
    requested = {part.strip() for part in raw.split(',') if part.strip()}
    unknown = requested - INCLUDE_OPTIONS
    if unknown:
        raise ValidationError(
            {"include": f"Unsupported include value(s): {', '.join(sorted(unknown))}"})
    return tuple(sorted(requested))


def parse_month(raw):
    if not raw:
        today = timezone.now().date()
        return today.replace(day=1)
    try:
        return datetime.strptime(raw, '%Y-%m').date()
    except ValueError:
        raise ValidationError({"month": "Use the YYYY-MM format."})


class SaleViewSet(mixins.ListModelMixin,
                  mixins.RetrieveModelMixin,
                  viewsets.GenericViewSet):
    serializer_class = SaleSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = SaleFilter

    def get_queryset(self):
        return Sale.objects.filter(
            vehicle__company=self.request.user.company
        ).select_related('vehicle', 'user').prefetch_related('charges', 'payments', 'media')

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self.action == 'list':
            context['include'] = parse_include(self.request.query_params.get('include'))
        else:
            context['include'] = DETAIL_INCLUDE
        return context

    def _respond(self, sale, message, status_code=status.HTTP_200_OK):
        sale = self.get_queryset().get(pk=sale.pk)
        return api_response(self.get_serializer(sale).data, message=message, status=status_code)

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request, *args, **kwargs):
        return api_response(self.get_serializer(self.get_object()).data)

    def create(self, request):
        serializer = SaleCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        sale = services.create_sale(request.user, serializer.validated_data)
        return self._respond(sale, "Sale created successfully", status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        patch = SalePatch.from_payload(request.data)
        if not patch:
            raise ValidationError("No fields to update.")
        sale = services.update_sale(pk, request.user, patch)
        return self._respond(sale, "Sale updated successfully")

    @action(detail=True, methods=['post'])
    def deliver(self, request, pk=None):
        serializer = DeliverySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sale = services.deliver_sale(
            pk, request.user,
            usage=serializer.validated_data.get('usage'),
            payments=serializer.validated_data.get('payments'),
        )
        return self._respond(sale, "Vehicle delivered")

    @action(detail=True, methods=['post'], url_path='return')
    def return_vehicle(self, request, pk=None):
        serializer = ReturnSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        sale = services.process_return(
            pk, request.user,
            charges=data.get('charges'),
            usage=data.get('usage'),
            payments=data.get('payments'),
            remark=data.get('remark'),
        )
        return self._respond(sale, "Return processed successfully")

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sale = services.cancel_sale(pk, request.user, serializer.validated_data.get('remark'))
        return self._respond(sale, "Sale cancelled")

    @action(detail=True, methods=['post'])
    def charges(self, request, pk=None):
        serializer = ChargeInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sale = services.add_charge(
            pk, request.user,
            serializer.validated_data['charge_type'],
            serializer.validated_data['amount'],
            serializer.validated_data.get('remark', ""),
        )
        return self._respond(sale, "Charge saved")

    @action(detail=True, methods=['delete'],
            url_path=r'charges/(?P<charge_type>[a-z_]+)')
    def remove_charge(self, request, pk=None, charge_type=None):
        if charge_type not in dict(CHARGE_TYPES):
            raise ValidationError({"charge_type": f"Unknown charge type '{charge_type}'."})
        sale = services.remove_charge(pk, request.user, charge_type)
        return self._respond(sale, "Charge removed")

    @action(detail=True, methods=['get', 'post'])
    def payments(self, request, pk=None):
        if request.method == 'GET':
            sale = self.get_object()
            return api_response(PaymentSerializer(sale.payments.all(), many=True).data)

        serializer = PaymentInputSerializer(data=request.data, many=True)
        serializer.is_valid(raise_exception=True)
        _, created = services.add_payments(pk, request.user, serializer.validated_data)
        return api_response(
            PaymentSerializer(created, many=True).data,
            message="Payment recorded", status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def upcoming(self, request):
        """Pending bookings delivering in ``month`` plus a count per month."""
        month_start = parse_month(request.query_params.get('month'))
        month_end = month_start + relativedelta(months=1)

        pending = self.get_queryset().filter(
            status='pending', date_of_delivery__date__gte=timezone.now().date())
        bookings = pending.filter(
            date_of_delivery__date__gte=month_start,
            date_of_delivery__date__lt=month_end,
        ).order_by('date_of_delivery')
        per_month = (
            pending.annotate(month=TruncMonth('date_of_delivery'))
            .values('month').annotate(count=Count('id')).order_by('month')
        )
        return api_response({
            "month": month_start.strftime('%Y-%m'),
            "results": self.get_serializer(bookings, many=True).data,
            "months": [
                {"month": row['month'].strftime('%Y-%m'), "count": row['count']}
                for row in per_month
            ],
        })


class PaymentVerifyView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, sale_id, payment_id):
        serializer = PaymentVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sale, payment = ledger.verify_payment(
            sale_id, payment_id, request.user,
            serializer.validated_data['status'],
            serializer.validated_data.get('remark'),
        )
        return api_response({
            "payment": PaymentSerializer(payment).data,
            "sale_payment_status": sale.payment_status,
        }, message="Payment verified")


class PaymentCancelView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, sale_id, payment_id):
        serializer = PaymentCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        _, payment = ledger.cancel_payment(
            sale_id, payment_id, request.user, serializer.validated_data.get('remark'))
        return api_response(PaymentSerializer(payment).data, message="Payment cancelled")


class DisabledDatesView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        vehicle_id = request.query_params.get('vehicle_id')
        if not vehicle_id:
            raise ValidationError({"vehicle_id": "This query parameter is required."})
        vehicle = get_object_or_404(Vehicle, pk=vehicle_id, company=request.user.company)
        return api_response(disabled_dates(
            vehicle, exclude_sale_id=request.query_params.get('exclude_sale_id') or None))
