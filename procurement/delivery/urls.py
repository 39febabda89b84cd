from django.urls import path

from procurement.delivery import views

app_name = 'delivery'

urlpatterns = [
    path('', views.delivery_create, name='delivery-create'),
    path('by-po/<int:po_id>/', views.delivery_list_by_po, name='delivery-list-by-po'),
    path('confirm/<int:request_id>/', views.delivery_confirm, name='delivery-confirm'),
    path('<str:delivery_id>/', views.delivery_detail, name='delivery-detail'),
]
