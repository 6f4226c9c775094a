from django.urls import path

from . import views

contact_urls = [
    ("accounts", "account"),
    # newer clients use the model name
    ("contacts", "contact"),
]

urlpatterns = [
    # staff session
    path("auth/login", views.login_view, name="auth-login"),
    path("auth/logout", views.logout_view, name="auth-logout"),
    path("auth/session", views.session_view, name="auth-session"),
    path("auth/register", views.register_view, name="auth-register"),
    path("users", views.users_view, name="user-create"),
    path("dashboard", views.dashboard_view, name="dashboard"),
    # catalogue
    path("products", views.ProductListView.as_view(), name="product-list"),
    path("products/inventory", views.inventory_view, name="product-inventory"),
    path("products/<int:pk>", views.ProductDetailView.as_view(), name="product-detail"),
    # estimates
    path("estimates", views.EstimateListView.as_view(), name="estimate-list"),
    path("estimates/<int:pk>", views.EstimateDetailView.as_view(), name="estimate-detail"),
    path("estimates/<int:pk>/line-items", views.EstimateLineItemsView.as_view(), name="estimate-line-items"),
    path("estimates/<int:pk>/convert", views.convert_estimate_view, name="estimate-convert"),
    path("estimate-line-items", views.EstimateLineItemListView.as_view(), name="estimate-line-item-list"),
    path("estimate-line-items/<int:pk>", views.EstimateLineItemDetailView.as_view(), name="estimate-line-item-detail"),
    # invoices
    path("invoices", views.InvoiceListView.as_view(), name="invoice-list"),
    path("invoices/<int:pk>", views.InvoiceDetailView.as_view(), name="invoice-detail"),
    path("invoices/<int:pk>/line-items", views.InvoiceLineItemsView.as_view(), name="invoice-line-items"),
    path("invoices/<int:pk>/payments", views.InvoicePaymentsView.as_view(), name="invoice-payments"),
    path("invoice-line-items", views.InvoiceLineItemListView.as_view(), name="invoice-line-item-list"),
    path("invoice-line-items/<int:pk>", views.InvoiceLineItemDetailView.as_view(), name="invoice-line-item-detail"),
    # purchase orders
    path("purchase-orders", views.PurchaseOrderListView.as_view(), name="purchase-order-list"),
    path("purchase-orders/<int:pk>", views.PurchaseOrderDetailView.as_view(), name="purchase-order-detail"),
    path("purchase-orders/<int:pk>/lines", views.PurchaseOrderLinesView.as_view(), name="purchase-order-lines"),
    path("purchase-orders/<int:pk>/payments", views.PurchaseOrderPaymentsView.as_view(), name="purchase-order-payments"),
    path("purchase-order-lines", views.PurchaseOrderLineListView.as_view(), name="purchase-order-line-list"),
    path("purchase-order-lines/<int:pk>", views.PurchaseOrderLineDetailView.as_view(), name="purchase-order-line-detail"),
    # money movements
    path("customer-payments", views.CustomerPaymentListView.as_view(), name="customer-payment-list"),
    path("customer-payments/<int:pk>", views.CustomerPaymentDetailView.as_view(), name="customer-payment-detail"),
    path("customer-payments/<int:pk>/approve", views.approve_payment_view, name="customer-payment-approve"),
    path("customer-payments/<int:pk>/reject", views.reject_payment_view, name="customer-payment-reject"),
    path("vendor-payments", views.VendorPaymentListView.as_view(), name="vendor-payment-list"),
    path("vendor-payments/<int:pk>", views.VendorPaymentDetailView.as_view(), name="vendor-payment-detail"),
    path("customer-credits", views.CreditListView.as_view(), name="credit-list"),
    path("customer-credits/<int:pk>", views.CreditDetailView.as_view(), name="credit-detail"),
    # running costs
    path("expenses", views.ExpenseListView.as_view(), name="expense-list"),
    path("expenses/<int:pk>", views.ExpenseDetailView.as_view(), name="expense-detail"),
    # internal change notifications
    path("webhook", views.webhook_view, name="webhook"),
    # portal
    path("portal/auth", views.portal_auth_view, name="portal-auth"),
    path("portal/logout", views.portal_logout_view, name="portal-logout"),
    path("portal/account", views.portal_account_view, name="portal-account"),
    path("portal/invoices", views.portal_invoices_view, name="portal-invoices"),
    path("portal/estimates", views.portal_estimates_view, name="portal-estimates"),
    path("portal/purchase-orders", views.portal_purchase_orders_view, name="portal-purchase-orders"),
    path("portal/payments", views.portal_payments_view, name="portal-payments"),
]

for prefix, name in contact_urls:
    urlpatterns += [
        path(prefix, views.ContactListView.as_view(), name=f"{name}-list"),
        path(f"{prefix}/<int:pk>", views.ContactDetailView.as_view(), name=f"{name}-detail"),
        path(f"{prefix}/<int:pk>/portal-access", views.portal_access_view, name=f"{name}-portal-access"),
    ]
