from django.urls import path

from .views import (
    LedgerCacheClearView,
    LoginView,
    OperationCostsView,
    OperationListView,
)

urlpatterns = [
    path("auth/login/", LoginView.as_view(), name="login"),
    path("operations/", OperationListView.as_view(), name="operations"),
    path(
        "operations/<str:operation_id>/costs/",
        OperationCostsView.as_view(),
        name="operation_costs",
    ),
    path("ledger/cache/clear/", LedgerCacheClearView.as_view(), name="ledger_cache_clear"),
]
