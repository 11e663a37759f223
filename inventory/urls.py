from django.urls import path

from . import views

app_name = 'inventory'

urlpatterns = [
    path('units/', views.InventoryUnitListCreateView.as_view(), name='unit-list-create'),
    path('units/<uuid:pk>/', views.InventoryUnitDetailView.as_view(), name='unit-detail'),
    path('conversions/', views.UnitConversionListCreateView.as_view(), name='conversion-list-create'),
    path('conversions/<uuid:pk>/', views.UnitConversionDetailView.as_view(), name='conversion-detail'),

    path('items/', views.InventoryItemListCreateView.as_view(), name='item-list-create'),
    path('items/low-stock/', views.low_stock, name='low-stock'),
    path('items/<uuid:pk>/', views.InventoryItemDetailView.as_view(), name='item-detail'),

    path('transactions/', views.InventoryTransactionListView.as_view(), name='transaction-list'),
    path('transactions/create/', views.create_transaction, name='transaction-create'),
    path('transfer/', views.transfer_stock, name='transfer'),

    path('recipes/', views.RecipeListCreateView.as_view(), name='recipe-list-create'),
    path('recipes/<uuid:pk>/', views.RecipeDetailView.as_view(), name='recipe-detail'),
]
