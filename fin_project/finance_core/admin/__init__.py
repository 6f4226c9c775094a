from .actions import approve_payments, convert_estimates, reject_payments
from .auditlog import AuditLogAdmin
from .contact import ContactAdmin, PortalAccessAdmin, ProductAdmin
from .inlines import (CustomerPaymentInline, EstimateLineItemInline,
                      InvoiceLineItemInline, PurchaseOrderLineInline,
                      PurchaseOrderPaymentInline)
from .invoice import EstimateAdmin, InvoiceAdmin, PurchaseOrderAdmin
from .payment import (CreditAdmin, CustomerPaymentAdmin, ExpenseAdmin,
                      PurchaseOrderPaymentAdmin)
from .ReadOnly import ReadOnlyAdmin
