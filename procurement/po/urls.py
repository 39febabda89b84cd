"""
Purchase Order URL Configuration
"""
from django.urls import path

from procurement.po import views

app_name = 'po'

urlpatterns = [
    path('', views.po_list, name='po-list'),
    path('<int:pk>/', views.po_detail, name='po-detail'),

    # Standard PO
    path('issue/', views.po_issue, name='po-issue'),
    path('<int:pk>/status/', views.po_update_status, name='po-update-status'),
    path('<int:pk>/cancel/', views.po_cancel, name='po-cancel'),

    # Direct PO and manager sign-off
    path('direct/', views.direct_po_create, name='direct-po-create'),
    path('pending-sign-off/', views.po_pending_sign_off, name='po-pending-sign-off'),
    path('sign-off/approve/', views.direct_po_approve, name='direct-po-approve'),
    path('sign-off/reject/', views.direct_po_reject, name='direct-po-reject'),
]
