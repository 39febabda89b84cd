"""
URL Configuration for reference data endpoints.
"""
from django.urls import path
from . import views

app_name = 'catalog'

urlpatterns = [
    path('sites/', views.site_list, name='site-list'),
    path('vendors/', views.vendor_list, name='vendor-list'),
    path('inventory/lookup/', views.inventory_lookup, name='inventory-lookup'),
]
