# sales/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import SaleViewSet, PaymentVerifyView, PaymentCancelView, DisabledDatesView

router = DefaultRouter(trailing_slash=False)
router.register(r'sales', SaleViewSet, basename='sale')

urlpatterns = [
    path('', include(router.urls)),
    path('payments/<uuid:sale_id>/<uuid:payment_id>/verify',
         PaymentVerifyView.as_view(), name='payment-verify'),
    path('payments/<uuid:sale_id>/<uuid:payment_id>/cancel',
         PaymentCancelView.as_view(), name='payment-cancel'),
    path('disabled-dates', DisabledDatesView.as_view(), name='disabled-dates'),
]
