from django.conf import settings

# Fallbacks for keys missing from settings.FINVENTORY
DEFAULTS = {
    "WEBHOOK_SECRET": "",
    "PORTAL_SESSION_HOURS": 24,
    "INVOICE_DUE_DAYS": 30,
    "UID_MAX_ATTEMPTS": 10,
    "MAX_DISPATCH_EVENTS": 100,
    "ALLOW_REGISTRATION": True,
}


def app_setting(name):
    return getattr(settings, "FINVENTORY", {}).get(name, DEFAULTS[name])
