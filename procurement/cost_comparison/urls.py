from django.urls import path

from procurement.cost_comparison import views

app_name = 'cost_comparison'

urlpatterns = [
    path('', views.cost_comparison_list, name='cc-list'),
    path('pending/', views.cost_comparison_pending, name='cc-pending'),
    path('<int:pk>/', views.cost_comparison_detail, name='cc-detail'),
    path('<int:pk>/submit/', views.cost_comparison_submit, name='cc-submit'),
    path('<int:pk>/approve/', views.cost_comparison_approve, name='cc-approve'),
    path('<int:pk>/reject/', views.cost_comparison_reject, name='cc-reject'),
    path('<int:pk>/resubmit/', views.cost_comparison_resubmit, name='cc-resubmit'),
]
