import logging
from collections import deque
from typing import Callable, NamedTuple, Optional

from django.core.exceptions import ObjectDoesNotExist
from django.db import DatabaseError, transaction

from ..conf import app_setting
from ..exceptions import ConcurrencyConflict, RecomputeFailure
from .events import DELETE, INSERT, ChangeEvent

logger = logging.getLogger(__name__)


class Route(NamedTuple):
    """Recompute the parent whose id sits under `key` when `when(event)` holds."""

    key: str
    recompute: Callable
    when: Optional[Callable] = None

    def applies(self, event):
        return self.when is None or self.when(event)


# ----------------------------
# Route predicates
# ----------------------------
def inserted_or_deleted(event):
    return event.op in (INSERT, DELETE)


def columns_changed(*keys):
    def predicate(event):
        return event.changed(*keys)

    predicate.__name__ = f"changed({', '.join(keys)})"
    return predicate


def any_of(*predicates):
    def predicate(event):
        return any(p(event) for p in predicates)

    return predicate


def updated_columns(*keys):
    # an UPDATE that touched one of the columns
    changed = columns_changed(*keys)

    def predicate(event):
        return not inserted_or_deleted(event) and changed(event)

    return predicate


def build_routes(recalc=None):
    """
    The static routing table: changed table -> parents to recompute.

    `recalc` is anything exposing the recompute_* functions (the
    recalculator module by default).
    """
    if recalc is None:
        from . import recalculator as recalc

    document_rollup = any_of(inserted_or_deleted, columns_changed("balance", "contactId"))

    return {
        "invoice_line_items": (Route("invoiceId", recalc.recompute_invoice),),
        "customer_payments": (Route("invoiceId", recalc.recompute_invoice),),
        "customer_credits": (
            Route("invoiceId", recalc.recompute_invoice),
            Route("estimateId", recalc.recompute_estimate),
        ),
        "estimate_line_items": (Route("estimateId", recalc.recompute_estimate),),
        "purchase_order_lines": (
            Route("purchaseOrderId", recalc.recompute_purchase_order),
        ),
        "vendor_payments": (
            Route("purchaseOrderId", recalc.recompute_purchase_order),
        ),
        "invoices": (
            Route("contactId", recalc.recompute_contact_balance, document_rollup),
            # the overdue status depends on the due date
            Route("id", recalc.recompute_invoice, updated_columns("dueDate")),
        ),
        "purchase_orders": (
            Route("contactId", recalc.recompute_contact_balance, document_rollup),
            Route("id", recalc.recompute_purchase_order, updated_columns("expectedDate")),
        ),
        "contacts": (
            Route(
                "id",
                recalc.recompute_net_balance,
                updated_columns("customerBalance", "vendorBalance"),
            ),
        ),
    }


class EventDispatcher:
    """
    Routes change events to recomputes and follows the chain upward.

    Each recompute hands back the event for the aggregate it rewrote, or
    None when nothing changed. Those events are queued and routed in turn,
    so line -> document -> contact settles in one dispatch and an unchanged
    parent stops the chain.
    """

    def __init__(self, routes=None, max_events=None):
        self.routes = build_routes() if routes is None else routes
        self.max_events = max_events

    def dispatch(self, event: ChangeEvent):
        max_events = self.max_events or app_setting("MAX_DISPATCH_EVENTS")
        processed = []
        queue = deque([event])

        with transaction.atomic():
            while queue:
                current = queue.popleft()
                processed.append(current)
                if len(processed) > max_events:
                    raise RecomputeFailure(
                        f"Recompute chain from {event.table} {event.id} exceeded {max_events} events"
                    )
                logger.info("Dispatching %s %s %s", current.op, current.table, current.id)
                queue.extend(self._route(current))

        return processed

    def _route(self, event):
        follow_ups = []
        for route in self.routes.get(event.table, ()):
            if not route.applies(event):
                continue
            for parent_id in event.key_values(route.key):
                result = self._run(route, parent_id, event)
                if result is not None:
                    follow_ups.append(result)
        return follow_ups

    def _run(self, route, parent_id, event):
        name = getattr(route.recompute, "__name__", repr(route.recompute))
        try:
            return route.recompute(parent_id)
        except ObjectDoesNotExist:
            # the parent went first in a cascading delete
            if event.op == DELETE:
                logger.info("%s(%s) skipped, parent already deleted", name, parent_id)
                return None
            raise
        except ConcurrencyConflict:
            raise
        except DatabaseError as exc:
            raise RecomputeFailure(f"{name}({parent_id}) failed: {exc}") from exc


def dispatch(event: ChangeEvent):
    return EventDispatcher().dispatch(event)
