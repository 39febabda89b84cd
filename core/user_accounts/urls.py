"""
URL Configuration for the acting user's account.
"""
from django.urls import path

from . import views

app_name = 'accounts'

urlpatterns = [
    path('me/', views.user_profile, name='user_profile'),
]
