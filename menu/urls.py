from django.urls import path

from . import views


urlpatterns = [
    # Category URLs
    path('categories/', views.MenuCategoryListCreateView.as_view(), name='category-list-create'),
    path('categories/<uuid:pk>/', views.MenuCategoryRetrieveUpdateDestroyView.as_view(), name='category-detail'),

    # Modifier URLs
    path('modifier-groups/', views.ModifierGroupListCreateView.as_view(), name='modifier-group-list-create'),
    path('modifier-groups/<uuid:pk>/', views.ModifierGroupRetrieveUpdateDestroyView.as_view(), name='modifier-group-detail'),
    path('modifier-groups/<uuid:group_id>/options/', views.ModifierOptionListCreateView.as_view(), name='modifier-option-list-create'),
    path('modifier-options/<uuid:pk>/', views.ModifierOptionRetrieveUpdateDestroyView.as_view(), name='modifier-option-detail'),

    # Menu URLs
    path('items/', views.MenuItemListCreateView.as_view(), name='menu-item-list-create'),
    path('items/search/', views.search_menu_items, name='menu-item-search'),
    path('items/bulk-availability/', views.bulk_update_availability, name='menu-item-bulk-availability'),
    path('items/by-category/<uuid:category_id>/', views.menu_by_category, name='menu-item-by-category'),
    path('items/<uuid:pk>/', views.MenuItemRetrieveUpdateDestroyView.as_view(), name='menu-item-detail'),
    path('items/<uuid:menu_item_id>/branches/', views.BranchMenuItemListCreateView.as_view(), name='menu-item-branch-overrides'),
    path('items/<uuid:menu_item_id>/duplicate/', views.duplicate_menu_item, name='menu-item-duplicate'),
]
