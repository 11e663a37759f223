from django.contrib import admin
from django.urls import path, include
from drf_yasg.views import get_schema_view
from drf_yasg import openapi
from rest_framework import permissions
from django.conf.urls.static import static
from django.conf import settings

# Setup Swagger schema view
schema_view = get_schema_view(
    openapi.Info(
        title=f"API Documentation {settings.POS['BRAND_NAME']}",
        default_version='v1',
        description="Multi-tenant restaurant POS API",
    ),
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path("api/", include("authentication.urls")),
    path("api/menu/", include("menu.urls")),
    path("api/orders/", include("orders.urls")),
    path("api/qr/", include("orders.qr_urls")),
    path("api/shifts/", include("shifts.urls")),
    path("api/inventory/", include("inventory.urls")),
    path("api/backoffice/", include("backoffice.urls")),
    path("api/assistant/", include("assistant.urls")),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
]

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
