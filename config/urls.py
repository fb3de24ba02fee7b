"""
URL configuration for the admin backend.

- /admin/   Django admin site (catalog, sales)
- /api/v1/  REST API used by the dashboard screens
"""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('apps.catalog.api.urls')),
    path('api/v1/', include('apps.sales.api.urls')),
    path('api/v1/', include('apps.dashboard.urls')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
