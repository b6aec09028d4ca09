"""
POS Django adapter URL routing.
"""

from django.urls import path

from adapters.django_api import views


urlpatterns = [
    path("pricing/calculate-discounts", views.calculate_discounts_view),
    path("pricing/refunds", views.refunds_view),
]
