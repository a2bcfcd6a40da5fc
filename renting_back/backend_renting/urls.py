from django.contrib import admin
from django.urls import path, include

from account.views import HealthView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('health', HealthView.as_view(), name='health'),
    path('api/', include('account.urls')),
    path('api/', include('vehicle.urls')),
    path('api/', include('sales.urls')),
    path('api/', include('finances.urls')),
]
