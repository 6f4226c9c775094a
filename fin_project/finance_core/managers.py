from django.db import models


# -----------------------------------------
# Query helpers shared by the document models
# -----------------------------------------
class ContactQuerySet(models.QuerySet):
    def customers(self):
        return self.filter(is_customer=True)

    def vendors(self):
        return self.filter(is_vendor=True)


class DocumentQuerySet(models.QuerySet):
    # Enables query:
    # Invoice.objects.for_contact(request.portal_contact)
    def for_contact(self, contact):
        return self.filter(contact=contact)

    # documents that still carry money owed in either direction
    def outstanding(self):
        return self.filter(balance__gt=0)


class PaymentQuerySet(models.QuerySet):
    def for_contact(self, contact):
        return self.filter(contact=contact)

    # Only approved payments count toward paid totals
    def approved(self):
        return self.filter(status="approved")
