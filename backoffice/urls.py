from django.urls import path

from . import views

app_name = 'backoffice'

urlpatterns = [
    # =============== SYSTEM ADMIN ===============
    path('admin/restaurants/', views.AdminRestaurantListView.as_view(), name='admin-restaurant-list'),
    path('admin/restaurants/create/', views.create_restaurant, name='admin-restaurant-create'),
    path('admin/restaurants/<uuid:restaurant_id>/renew/', views.renew_subscription, name='admin-renew-subscription'),
    path('admin/restaurants/<uuid:restaurant_id>/branch-limit/', views.update_branch_limit, name='admin-branch-limit'),
    path('admin/restaurants/<uuid:restaurant_id>/set-active/', views.set_restaurant_active, name='admin-set-active'),
    path('admin/restaurants/<uuid:restaurant_id>/assign-owner/', views.assign_owner, name='admin-assign-owner'),
    path('admin/restaurants/<uuid:restaurant_id>/modules/', views.toggle_modules, name='admin-modules'),
    path('admin/restaurants/<uuid:restaurant_id>/reset-owner-password/', views.reset_owner_password, name='admin-reset-owner-password'),
    path('admin/users/<uuid:user_id>/email/', views.update_user_email, name='admin-user-email'),
    path('admin/users/<uuid:user_id>/delete/', views.delete_user, name='admin-user-delete'),

    # =============== OWNER REPORTS ===============
    path('reports/daily-summary/', views.daily_summary, name='daily-summary'),
    path('reports/sales-summary/', views.sales_summary, name='sales-summary'),
    path('reports/sales-summary/export/', views.export_sales_summary, name='sales-summary-export'),
    path('reports/cash-differences/', views.cash_differences, name='cash-differences'),
    path('reports/cash-differences/export/', views.export_cash_differences, name='cash-differences-export'),
    path('reports/best-sellers/', views.best_sellers, name='best-sellers'),
    path('reports/refunds-voids/', views.refund_void_insights, name='refund-void-insights'),
    path('reports/shifts/', views.ShiftReportListView.as_view(), name='shift-list'),
]
