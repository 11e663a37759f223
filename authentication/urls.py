from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView

from . import views

urlpatterns = [
    # =============== API DOCUMENTATION ===============
    path('schema/', SpectacularAPIView.as_view(), name='schema'),
    path('docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),

    # =============== AUTHENTICATION ===============
    path('auth/login/', views.CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # =============== USER PROFILE ===============
    path('profile/', views.MyProfileView.as_view(), name='my_profile'),
    path('profile/change-password/', views.change_password, name='change_password'),
    path('me/', views.me, name='me'),
    path('cashier/status/', views.cashier_status, name='cashier_status'),

    # =============== BRANCH MANAGEMENT ===============
    path('branches/', views.BranchListCreateView.as_view(), name='branch_list_create'),
    path('branches/<uuid:branch_id>/', views.BranchDetailView.as_view(), name='branch_detail'),

    # =============== STAFF MANAGEMENT ===============
    path('staff/', views.StaffListCreateView.as_view(), name='staff_list_create'),
    path('staff/<uuid:role_id>/', views.StaffDetailView.as_view(), name='staff_detail'),
    path('staff/<uuid:role_id>/email/', views.update_staff_email, name='staff_update_email'),

    # =============== SETTINGS & AUDIT ===============
    path('settings/', views.RestaurantSettingsView.as_view(), name='restaurant_settings'),
    path('audit-logs/', views.AuditLogListView.as_view(), name='audit_log_list'),

    # =============== SYSTEM ===============
    path('health/', views.health_check, name='health_check'),
]
