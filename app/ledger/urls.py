"""
URL configuration for the ledger API.

URL Structure:
    Transactions:
        /transactions/                 GET, POST
        /transactions/{id}/            GET, PATCH, DELETE

    Accounts:
        /accounts/                     GET, POST
        /accounts/{id}/                GET
        /accounts/{id}/limits/         GET, POST
        /accounts/{id}/limit-status/   GET

    Categories:
        /categories/                   GET, POST

All URLs are prefixed with /api/v1/ledger/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from ledger.views import AccountViewSet, CategoryViewSet, TransactionViewSet

router = DefaultRouter()
router.register(r"transactions", TransactionViewSet, basename="transaction")
router.register(r"accounts", AccountViewSet, basename="account")
router.register(r"categories", CategoryViewSet, basename="category")

app_name = "ledger"

urlpatterns = [
    path("", include(router.urls)),
]
