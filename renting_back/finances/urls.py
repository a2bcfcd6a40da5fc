# finances/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ExpenseViewSet, StatementView, RevenueView

router = DefaultRouter(trailing_slash=False)
router.register(r'expenses', ExpenseViewSet, basename='expense')

urlpatterns = [
    path('', include(router.urls)),
    path('statements', StatementView.as_view(), name='statements'),
    path('revenue', RevenueView.as_view(), name='revenue'),
]
