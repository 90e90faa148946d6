"""URL configuration for the MishaTravel back-office.

The `urlpatterns` list routes URLs to views. It includes both Django admin
and application‑level routers provided by Django Rest Framework and each app.
Admin (back-office) endpoints live under `/api/v1/admin/...`, the agency
portal under `/api/v1/agency/...`.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView  # type: ignore

from apps.core.views import healthz

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    path('healthz/', healthz, name='healthz'),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    # Authentication and account management
    path('api/v1/auth/', include(('apps.users.auth_urls', 'auth'), namespace='auth')),
    path('api/v1/admin/users/', include('apps.users.urls')),
    path('api/v1/admin/activity/', include('apps.core.urls')),
    path('api/v1/notifications/', include('apps.notifications.urls')),
    # Back-office
    path('api/v1/admin/agencies/', include('apps.agencies.urls')),
    path('api/v1/admin/catalog/', include('apps.catalog.urls')),
    path('api/v1/admin/quotes/', include('apps.quotes.urls')),
    path('api/v1/admin/media/', include('apps.media.urls')),
    path('api/v1/admin/statements/', include('apps.statements.urls')),
    # Public catalog feeds
    path('api/v1/public/catalog/', include('apps.catalog.public_urls')),
    # Agency portal
    path('api/v1/agency/', include('apps.agencies.portal_urls')),
    path('api/v1/agency/quotes/', include('apps.quotes.portal_urls')),
    path('api/v1/agency/statements/', include('apps.statements.portal_urls')),
]
