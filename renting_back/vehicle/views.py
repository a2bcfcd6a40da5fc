# vehicle/views.py
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from django.utils import timezone
import logging

from backend_renting.permissions import RolePermission, IsCompanyAdmin
from backend_renting.mixins import EnvelopeMixin
from backend_renting.responses import api_response
from .filters import VehicleFilter, ReminderFilter
from .models import Vehicle, Reminder, REMINDER_TYPES
from .reminders import acknowledge_reminder, due_reminders
from .serializers import (
    VehicleSerializer, VehicleStatusSerializer, VehicleServicingSerializer,
    ServicingInitSerializer, MarkServicedSerializer, ReminderSerializer,
    ReminderAcknowledgementSerializer,
)
from .servicing import (
    current_servicing, initialize_servicing, mark_as_serviced,
    vehicles_due_for_servicing,
)

logger = logging.getLogger(__name__)


class VehicleViewSet(EnvelopeMixin, viewsets.ModelViewSet):
    serializer_class = VehicleSerializer
    permission_classes = [IsAuthenticated, RolePermission]
    allowed_roles = ['admin', 'staff']
    filterset_class = VehicleFilter
    http_method_names = ['get', 'post', 'put', 'patch', 'head', 'options']

    def get_queryset(self):
        return Vehicle.objects.filter(
            company=self.request.user.company).select_related('created_by')

    def perform_create(self, serializer):
        vehicle = serializer.save(
            company=self.request.user.company, created_by=self.request.user)
        logger.info(f"Vehicle {vehicle.registration_number} registered by {self.request.user.username}")

    @action(detail=True, methods=['post'])
    def update_status(self, request, pk=None):
        vehicle = self.get_object()
        serializer = VehicleStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if vehicle.status == 'rented':
            return api_response(
                message="A rented vehicle changes status through its sale",
                status=status.HTTP_400_BAD_REQUEST)

        vehicle.update_status(serializer.validated_data['status'])
        return api_response(self.get_serializer(vehicle).data, message="Status updated successfully")

    @action(detail=True, methods=['get', 'post'])
    def servicing(self, request, pk=None):
        vehicle = self.get_object()
        if request.method == 'GET':
            record = current_servicing(vehicle)
            data = VehicleServicingSerializer(record).data if record else None
            return api_response(data)

        serializer = ServicingInitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        record = initialize_servicing(
            vehicle,
            serializer.validated_data['last_servicing_km'],
            serializer.validated_data['servicing_interval_km'],
        )
        return api_response(
            VehicleServicingSerializer(record).data,
            message="Servicing initialized", status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'], url_path='servicing/history')
    def servicing_history(self, request, pk=None):
        vehicle = self.get_object()
        records = vehicle.servicing_records.order_by('-created_at')
        return api_response(VehicleServicingSerializer(records, many=True).data)

    @action(detail=True, methods=['post'], url_path='servicing/complete')
    def servicing_complete(self, request, pk=None):
        vehicle = self.get_object()
        serializer = MarkServicedSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        record = mark_as_serviced(
            vehicle,
            km_reading=serializer.validated_data.get('km_reading'),
            serviced_at=serializer.validated_data.get('serviced_at'),
        )
        if vehicle.status == 'under_maintenance':
            vehicle.update_status('available')
        return api_response(VehicleServicingSerializer(record).data, message="Vehicle marked as serviced")

    @action(detail=False, methods=['get'], url_path='servicing-due')
    def servicing_due(self, request):
        vehicles = vehicles_due_for_servicing(request.user.company)
        data = [
            dict(VehicleSerializer(vehicle).data, next_servicing_km=str(vehicle.next_servicing_km))
            for vehicle in vehicles
        ]
        return api_response(data)


class ReminderViewSet(EnvelopeMixin, viewsets.ModelViewSet):
    serializer_class = ReminderSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = ReminderFilter

    def get_queryset(self):
        return Reminder.objects.filter(
            vehicle__company=self.request.user.company
        ).select_related('vehicle', 'created_by')

    def get_permissions(self):
        """
        Changing or removing a schedule is an admin action
        """
        if self.action in ('update', 'partial_update', 'destroy'):
            return [IsCompanyAdmin()]
        return super().get_permissions()

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['today'] = timezone.now().date()
        return context

    def perform_create(self, serializer):
        reminder = serializer.save(created_by=self.request.user)
        logger.info(
            f"Reminder {reminder.reminder_type} created for vehicle {reminder.vehicle.registration_number}")

    def perform_destroy(self, instance):
        if self.request.query_params.get('hard', '').lower() in ('1', 'true', 'yes'):
            logger.info(f"Reminder {instance.id} permanently deleted by {self.request.user.username}")
            instance.delete()
        else:
            instance.soft_delete()

    @action(detail=True, methods=['post'])
    def acknowledge(self, request, pk=None):
        reminder, acknowledgement = acknowledge_reminder(
            pk, request.user, request.user.company)
        return api_response({
            "reminder": self.get_serializer(reminder).data,
            "acknowledgement": ReminderAcknowledgementSerializer(acknowledgement).data,
        }, message="Reminder acknowledged")

    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        reminder = self.get_object()
        acknowledgements = reminder.acknowledgements.select_related('user').order_by('-acknowledged_at')
        return api_response(ReminderAcknowledgementSerializer(acknowledgements, many=True).data)

    @action(detail=False, methods=['get'])
    def due(self, request):
        reminder_type = request.query_params.get('reminder_type')
        if reminder_type and reminder_type not in dict(REMINDER_TYPES):
            return api_response(
                message=f"Invalid reminder_type '{reminder_type}'",
                status=status.HTTP_400_BAD_REQUEST)

        queryset = due_reminders(request.user.company, reminder_type=reminder_type)
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)
