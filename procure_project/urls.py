"""
URL configuration for procure_project project.
"""
from django.urls import path, include

urlpatterns = [
    path('procurement/catalog/', include('procurement.catalog.urls')),
    path('procurement/requests/', include('procurement.PR.urls')),
    path('procurement/notes/', include('procurement.notes.urls')),
    path('procurement/cost-comparisons/', include('procurement.cost_comparison.urls')),
    path('procurement/po/', include('procurement.po.urls')),
    path('procurement/deliveries/', include('procurement.delivery.urls')),

    # Authentication endpoints (login, token refresh)
    path('auth/', include('core.user_accounts.auth_urls')),

    # Account endpoints (profile)
    path('accounts/', include('core.user_accounts.urls')),
]
