# Public QR ordering, no login
from django.urls import path
from . import views

app_name = 'qr'

urlpatterns = [
    path('menu/<uuid:restaurant_id>/', views.public_qr_menu, name='qr-menu'),
    path('orders/', views.qr_create_order, name='qr-create-order'),
    path('orders/<uuid:order_id>/', views.qr_order_status, name='qr-order-status'),
]
