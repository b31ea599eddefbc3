from django.urls import path

from finance.views import (
    BudgetDetailAPIView,
    BudgetListCreateAPIView,
    ExpenseApproveAPIView,
    ExpenseDetailAPIView,
    ExpenseListCreateAPIView,
    ExpenseRejectAPIView,
    FeeAssignmentDetailAPIView,
    FeeAssignmentListCreateAPIView,
    FeeDetailAPIView,
    FeeListCreateAPIView,
    FinanceStatsAPIView,
    InvoiceDetailAPIView,
    InvoiceListCreateAPIView,
    PaymentDetailAPIView,
    PaymentListCreateAPIView,
)

urlpatterns = [
    path("fees/", FeeListCreateAPIView.as_view(), name="finance-fees-list"),
    path("fees/<int:pk>/", FeeDetailAPIView.as_view(), name="finance-fees-detail"),
    path("assignments/", FeeAssignmentListCreateAPIView.as_view(), name="finance-assignments-list"),
    path(
        "assignments/<int:pk>/",
        FeeAssignmentDetailAPIView.as_view(),
        name="finance-assignments-detail",
    ),
    path("invoices/", InvoiceListCreateAPIView.as_view(), name="finance-invoices-list"),
    path("invoices/<int:pk>/", InvoiceDetailAPIView.as_view(), name="finance-invoices-detail"),
    path("payments/", PaymentListCreateAPIView.as_view(), name="finance-payments-list"),
    path("payments/<int:pk>/", PaymentDetailAPIView.as_view(), name="finance-payments-detail"),
    path("expenses/", ExpenseListCreateAPIView.as_view(), name="finance-expenses-list"),
    path("expenses/<int:pk>/", ExpenseDetailAPIView.as_view(), name="finance-expenses-detail"),
    path(
        "expenses/<int:pk>/approve/",
        ExpenseApproveAPIView.as_view(),
        name="finance-expenses-approve",
    ),
    path(
        "expenses/<int:pk>/reject/",
        ExpenseRejectAPIView.as_view(),
        name="finance-expenses-reject",
    ),
    path("budgets/", BudgetListCreateAPIView.as_view(), name="finance-budgets-list"),
    path("budgets/<int:pk>/", BudgetDetailAPIView.as_view(), name="finance-budgets-detail"),
    path("stats/", FinanceStatsAPIView.as_view(), name="finance-stats"),
]
