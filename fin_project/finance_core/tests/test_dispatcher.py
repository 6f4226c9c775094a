from decimal import Decimal
from unittest import mock

import pytest
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.test import TestCase

from ..exceptions import RecomputeFailure
from ..models import Contact, Invoice, InvoiceLineItem
from ..services import recalculator
from ..services.dispatcher import EventDispatcher, build_routes
from ..services.events import DELETE, INSERT, UPDATE, ChangeEvent
from .helpers import make_customer, make_invoice

RECOMPUTES = (
    "recompute_invoice",
    "recompute_estimate",
    "recompute_purchase_order",
    "recompute_contact_balance",
    "recompute_net_balance",
)


def fake_recalculator(**side_effects):
    recalc = mock.Mock(spec=RECOMPUTES)
    for name in RECOMPUTES:
        getattr(recalc, name).return_value = None
    for name, effect in side_effects.items():
        getattr(recalc, name).side_effect = effect
    return recalc


@pytest.mark.django_db
class TestRouting:
    def dispatch(self, event, recalc):
        return EventDispatcher(build_routes(recalc)).dispatch(event)

    def test_invoice_line_insert_recomputes_invoice(self):
        recalc = fake_recalculator()
        self.dispatch(ChangeEvent("invoice_line_items", 1, INSERT, row={"invoiceId": 5}), recalc)

        recalc.recompute_invoice.assert_called_once_with(5)
        recalc.recompute_contact_balance.assert_not_called()

    def test_delete_reads_old_row(self):
        recalc = fake_recalculator()
        self.dispatch(
            ChangeEvent("purchase_order_lines", 1, DELETE, old_row={"purchaseOrderId": 9}), recalc
        )
        recalc.recompute_purchase_order.assert_called_once_with(9)

    def test_vendor_payments_recompute_purchase_order(self):
        recalc = fake_recalculator()
        self.dispatch(
            ChangeEvent("vendor_payments", 2, INSERT, row={"purchase_order_id": 4}), recalc
        )
        recalc.recompute_purchase_order.assert_called_once_with(4)

    def test_credit_reaches_invoice_and_estimate(self):
        recalc = fake_recalculator()
        self.dispatch(
            ChangeEvent("customer_credits", 3, INSERT, row={"invoiceId": 5, "estimateId": 6}),
            recalc,
        )
        recalc.recompute_invoice.assert_called_once_with(5)
        recalc.recompute_estimate.assert_called_once_with(6)

    def test_moved_child_recomputes_both_parents(self):
        recalc = fake_recalculator()
        self.dispatch(
            ChangeEvent(
                "invoice_line_items", 1, UPDATE, row={"invoiceId": 2}, old_row={"invoiceId": 1}
            ),
            recalc,
        )
        assert recalc.recompute_invoice.call_args_list == [mock.call(2), mock.call(1)]

    def test_invoice_update_without_balance_change_stops(self):
        recalc = fake_recalculator()
        row = {"id": 8, "contactId": 1, "balance": "10.00", "dueDate": None, "notes": "new"}
        old_row = dict(row, notes="old")
        self.dispatch(ChangeEvent("invoices", 8, UPDATE, row=row, old_row=old_row), recalc)

        recalc.recompute_contact_balance.assert_not_called()
        recalc.recompute_invoice.assert_not_called()

    def test_invoice_balance_change_recomputes_contact(self):
        recalc = fake_recalculator()
        row = {"id": 8, "contactId": 1, "balance": "10.00"}
        self.dispatch(
            ChangeEvent("invoices", 8, UPDATE, row=row, old_row=dict(row, balance="10.5")), recalc
        )
        recalc.recompute_contact_balance.assert_called_once_with(1)

    def test_invoice_due_date_change_recomputes_invoice(self):
        recalc = fake_recalculator()
        row = {"id": 8, "contactId": 1, "balance": "10.00", "dueDate": "2025-02-01"}
        self.dispatch(
            ChangeEvent("invoices", 8, UPDATE, row=row, old_row=dict(row, dueDate="2025-01-01")),
            recalc,
        )
        recalc.recompute_invoice.assert_called_once_with(8)
        recalc.recompute_contact_balance.assert_not_called()

    def test_invoice_insert_and_delete_recompute_contact(self):
        recalc = fake_recalculator()
        self.dispatch(ChangeEvent("invoices", 8, INSERT, row={"id": 8, "contactId": 3}), recalc)
        self.dispatch(ChangeEvent("invoices", 8, DELETE, old_row={"id": 8, "contactId": 3}), recalc)
        assert recalc.recompute_contact_balance.call_args_list == [mock.call(3), mock.call(3)]

    def test_contact_balance_change_recomputes_net(self):
        recalc = fake_recalculator()
        row = {"id": 4, "customerBalance": "5.00", "vendorBalance": "0.00"}
        self.dispatch(
            ChangeEvent("contacts", 4, UPDATE, row=row, old_row=dict(row, customerBalance="0.00")),
            recalc,
        )
        recalc.recompute_net_balance.assert_called_once_with(4)

    def test_legacy_account_names_are_aliases(self):
        recalc = fake_recalculator()
        row = {"id": 4, "customerBalance": "5.00", "vendorBalance": "0.00"}
        self.dispatch(
            ChangeEvent("accounts", 4, UPDATE, row=row, old_row=dict(row, vendorBalance="1.00")),
            recalc,
        )
        self.dispatch(ChangeEvent("invoices", 8, INSERT, row={"id": 8, "accountId": 3}), recalc)

        recalc.recompute_net_balance.assert_called_once_with(4)
        recalc.recompute_contact_balance.assert_called_once_with(3)

    def test_unrouted_table_is_ignored(self):
        recalc = fake_recalculator()
        processed = self.dispatch(ChangeEvent("products", 1, UPDATE, row={"id": 1}), recalc)
        assert len(processed) == 1
        for name in RECOMPUTES:
            getattr(recalc, name).assert_not_called()

    def test_follow_up_events_are_routed(self):
        invoice_changed = ChangeEvent(
            "invoices", 5, UPDATE, row={"id": 5, "contactId": 2, "balance": "9.00"},
            old_row={"id": 5, "contactId": 2, "balance": "0.00"},
        )
        recalc = fake_recalculator(recompute_invoice=[invoice_changed])

        processed = self.dispatch(
            ChangeEvent("invoice_line_items", 1, INSERT, row={"invoiceId": 5}), recalc
        )

        assert [e.table for e in processed] == ["invoice_line_items", "invoices"]
        recalc.recompute_contact_balance.assert_called_once_with(2)

    def test_runaway_chain_is_capped(self):
        def always_changed(pk):
            row = {"id": pk, "contactId": pk, "balance": "1.00", "dueDate": "2025-01-02"}
            return ChangeEvent("invoices", pk, UPDATE, row=row, old_row=dict(row, dueDate="2025-01-01"))

        recalc = fake_recalculator(recompute_invoice=always_changed)
        with pytest.raises(RecomputeFailure):
            EventDispatcher(build_routes(recalc), max_events=5).dispatch(
                ChangeEvent("invoice_line_items", 1, INSERT, row={"invoiceId": 1})
            )

    def test_missing_parent_skipped_on_delete(self):
        recalc = fake_recalculator(recompute_invoice=Invoice.DoesNotExist)
        self.dispatch(ChangeEvent("invoice_line_items", 1, DELETE, old_row={"invoiceId": 5}), recalc)
        recalc.recompute_invoice.assert_called_once_with(5)

    def test_missing_parent_raises_on_insert(self):
        recalc = fake_recalculator(recompute_invoice=Invoice.DoesNotExist)
        with pytest.raises(Invoice.DoesNotExist):
            self.dispatch(ChangeEvent("invoice_line_items", 1, INSERT, row={"invoiceId": 5}), recalc)

    def test_database_errors_become_recompute_failure(self):
        recalc = fake_recalculator(recompute_invoice=DatabaseError("boom"))
        with pytest.raises(RecomputeFailure):
            self.dispatch(ChangeEvent("invoice_line_items", 1, INSERT, row={"invoiceId": 5}), recalc)


class ChangeEventPayloadTests(TestCase):
    def test_from_payload_normalizes(self):
        event = ChangeEvent.from_payload(
            {"table": "accounts", "id": "4", "op": "update", "row": {"account_id": 1}}
        )
        self.assertEqual(event.table, "contacts")
        self.assertEqual(event.id, 4)
        self.assertEqual(event.op, UPDATE)
        self.assertEqual(event.row, {"contactId": 1})

    def test_id_falls_back_to_row(self):
        event = ChangeEvent.from_payload({"table": "invoices", "op": "DELETE", "old_row": {"id": 3}})
        self.assertEqual(event.id, 3)

    def test_malformed_payloads_rejected(self):
        bad = [
            [],
            {"id": 1, "op": "INSERT"},
            {"table": "invoices", "id": 1, "op": "UPSERT"},
            {"table": "invoices", "op": "INSERT"},
            {"table": "invoices", "id": "x", "op": "INSERT"},
            {"table": "invoices", "id": 1, "op": "INSERT", "row": "nope"},
        ]
        for payload in bad:
            with self.subTest(payload=payload):
                with self.assertRaises(ValidationError):
                    ChangeEvent.from_payload(payload)


class NoFanOutTests(TestCase):
    """Count recomputes against the real recalculator."""

    def setUp(self):
        self.customer = make_customer()
        self.invoice = make_invoice(self.customer, lines=[(1, "10.00")])
        self.spy = mock.Mock(wraps=recalculator)
        self.dispatcher = EventDispatcher(build_routes(self.spy))

    def test_replaying_settled_event_touches_nothing_upstream(self):
        line = self.invoice.line_items.get()
        event = ChangeEvent.for_instance(line, INSERT)

        self.dispatcher.dispatch(event)
        self.dispatcher.dispatch(event)

        self.assertEqual(self.spy.recompute_invoice.call_count, 2)
        self.assertEqual(self.spy.recompute_contact_balance.call_count, 0)
        self.assertEqual(self.spy.recompute_net_balance.call_count, 0)

    def test_new_line_walks_chain_once(self):
        # write the row without change capture, then dispatch by hand
        with mock.patch("finance_core.signals.dispatcher.dispatch"):
            line = InvoiceLineItem.objects.create(
                invoice=self.invoice, description="extra", unit_price=Decimal("5.00")
            )

        processed = self.dispatcher.dispatch(ChangeEvent.for_instance(line, INSERT))

        self.assertEqual([e.table for e in processed], ["invoice_line_items", "invoices", "contacts"])
        self.assertEqual(self.spy.recompute_invoice.call_count, 1)
        self.assertEqual(self.spy.recompute_contact_balance.call_count, 1)
        # net_balance was written with the balances, so the follow-up is a no-op
        self.assertEqual(self.spy.recompute_net_balance.call_count, 1)

        contact = Contact.objects.get(pk=self.customer.pk)
        self.assertEqual(contact.customer_balance, Decimal("15.00"))
        self.assertEqual(contact.net_balance, Decimal("15.00"))
