from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase

from ..models import AuditLog
from ..services.payment import approve_customer_payment, reject_customer_payment
from .helpers import make_customer, make_invoice, pay_invoice


class PaymentApprovalTests(TestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(username="clerk", password="pw")
        self.customer = make_customer()
        self.invoice = make_invoice(self.customer, lines=[(1, "100.00")])
        self.payment = pay_invoice(self.invoice, "40.00", status="pending")

    def test_approval_updates_invoice_and_contact(self):
        payment = approve_customer_payment(self.payment.pk, user=self.user)

        self.assertEqual(payment.status, "approved")
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.total_paid, Decimal("40.00"))
        self.assertEqual(self.invoice.balance, Decimal("60.00"))
        self.assertEqual(self.invoice.payment_status, "partial")
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.customer_balance, Decimal("60.00"))

        entry = AuditLog.objects.get(action="approve")
        self.assertEqual(entry.user, self.user)
        self.assertEqual(entry.changes["status"], ["pending", "approved"])

    def test_second_approval_is_a_no_op(self):
        approve_customer_payment(self.payment.pk)
        approve_customer_payment(self.payment.pk)

        self.assertEqual(AuditLog.objects.filter(action="approve").count(), 1)
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.total_paid, Decimal("40.00"))

    def test_rejecting_approved_payment_removes_it(self):
        approve_customer_payment(self.payment.pk)
        reject_customer_payment(self.payment.pk)

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.total_paid, Decimal("0.00"))
        self.assertEqual(self.invoice.balance, Decimal("100.00"))
        self.assertEqual(self.invoice.payment_status, "pending")

    def test_rejected_payment_cannot_be_approved(self):
        reject_customer_payment(self.payment.pk)

        with self.assertRaises(ValidationError):
            approve_customer_payment(self.payment.pk)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, "rejected")
