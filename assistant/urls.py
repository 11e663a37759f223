from django.urls import path

from . import views

app_name = 'assistant'

urlpatterns = [
    path('scope/', views.scope_check, name='scope-check'),
    path('alerts/', views.alerts, name='alerts'),
]
