from django.urls import path
from . import views

app_name = 'shifts'

urlpatterns = [
    path('current/', views.current_shift, name='current-shift'),
    path('open/', views.open_shift, name='open-shift'),
    path('close/', views.close_shift, name='close-shift'),
    path('cash-movement/', views.cash_movement, name='cash-movement'),
    path('<uuid:shift_id>/transactions/', views.ShiftTransactionListView.as_view(), name='shift-transactions'),
    path('<uuid:shift_id>/z-report/', views.z_report, name='z-report'),
    path('<uuid:shift_id>/z-report/export/', views.export_z_report, name='z-report-export'),
]
