from django.urls import path

from . import views

app_name = 'notes'

urlpatterns = [
    path('<str:request_number>/', views.request_notes, name='request-notes'),
]
