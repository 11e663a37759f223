from django.urls import path
from . import views

app_name = 'orders'

urlpatterns = [
    # Tables
    path('tables/', views.TableListCreateView.as_view(), name='table-list'),
    path('tables/<uuid:pk>/', views.TableDetailView.as_view(), name='table-detail'),

    # Orders
    path('', views.OrderListView.as_view(), name='order-list'),
    path('create/', views.create_order, name='order-create'),
    path('open/', views.open_orders, name='open-orders'),
    path('held/', views.held_orders, name='held-orders'),
    path('recent/', views.recent_orders, name='recent-orders'),
    path('table-payment/', views.complete_table_payment, name='table-payment'),
    path('<uuid:pk>/', views.OrderDetailView.as_view(), name='order-detail'),

    # Order lines
    path('<uuid:order_id>/items/', views.add_order_item, name='order-add-item'),
    path('items/<uuid:item_id>/', views.order_item_detail, name='order-item-detail'),
    path('items/<uuid:item_id>/void/', views.void_order_item, name='order-item-void'),

    # Order actions
    path('<uuid:order_id>/discount/', views.apply_discount, name='order-discount'),
    path('<uuid:order_id>/hold/', views.hold_order, name='order-hold'),
    path('<uuid:order_id>/resume/', views.resume_order, name='order-resume'),
    path('<uuid:order_id>/cancel/', views.cancel_order, name='order-cancel'),
    path('<uuid:order_id>/reopen/', views.reopen_order, name='order-reopen'),
    path('<uuid:order_id>/move-table/', views.move_order_table, name='order-move-table'),
    path('<uuid:order_id>/send-to-kitchen/', views.send_to_kitchen, name='order-send-to-kitchen'),

    # Payment, refund & receipt
    path('<uuid:order_id>/complete-payment/', views.complete_payment, name='order-complete-payment'),
    path('<uuid:order_id>/refund/', views.create_refund, name='order-refund'),
    path('<uuid:order_id>/receipt/', views.get_receipt, name='order-receipt'),

    # Kitchen display
    path('kds/', views.kds_orders, name='kds-orders'),
    path('kds/<uuid:order_id>/status/', views.kds_update_status, name='kds-update-status'),

    # QR orders, cashier side
    path('qr/pending/', views.qr_pending_orders, name='qr-pending'),
    path('qr/<uuid:order_id>/confirm/', views.qr_confirm_order, name='qr-confirm'),
    path('qr/<uuid:order_id>/reject/', views.qr_reject_order, name='qr-reject'),
]
