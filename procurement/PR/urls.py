"""
Material Request URL Configuration
"""
from django.urls import path

from procurement.PR import views

app_name = 'pr'

urlpatterns = [
    # ============================================================================
    # Drafts
    # ============================================================================
    path('drafts/', views.draft_list, name='draft-list'),
    path('drafts/<str:request_number>/', views.draft_detail, name='draft-detail'),
    path('drafts/<str:request_number>/send/', views.draft_send, name='draft-send'),

    # ============================================================================
    # Row actions
    # ============================================================================
    path('items/bulk-status/', views.request_bulk_update_status, name='request-bulk-status'),
    path('items/<int:pk>/', views.request_update_details, name='request-update-details'),
    path('items/<int:pk>/status/', views.request_update_status, name='request-update-status'),
    path('items/<int:pk>/resubmit/', views.request_resubmit, name='request-resubmit'),
    path('items/<int:pk>/stock/', views.request_fulfil_from_stock, name='request-fulfil-from-stock'),

    # ============================================================================
    # Request groups
    # ============================================================================
    path('', views.request_list, name='request-list'),
    path('pending/', views.request_pending, name='request-pending'),
    path('<str:request_number>/', views.request_detail, name='request-detail'),
]
