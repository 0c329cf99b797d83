"""
URL configuration for triadeinvest project.

The investor app only talks JSON; every route lives under ``api/``.
"""

from django.urls import include, path

urlpatterns = [
    path("api/", include("operacoes.urls")),
]
