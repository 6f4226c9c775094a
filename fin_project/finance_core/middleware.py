import logging

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied, ValidationError
from django.db.models import ProtectedError
from django.http import Http404, JsonResponse
from django.utils.deprecation import MiddlewareMixin

from .exceptions import AlreadyConverted, ConcurrencyConflict, RecomputeFailure
from .services.portal import resolve_portal_session

logger = logging.getLogger(__name__)

PORTAL_TOKEN_HEADER = "HTTP_X_PORTAL_TOKEN"


class PortalSessionMiddleware(MiddlewareMixin):
    # Run on every request and attach the contact logged into the
    # portal (or None), based on the X-Portal-Token header
    def process_request(self, request):
        token = request.META.get(PORTAL_TOKEN_HEADER, "").strip()
        request.portal_token = token or None
        request.portal_contact = resolve_portal_session(token) if token else None


def validation_message(exc: ValidationError):
    if hasattr(exc, "error_dict"):
        return "; ".join(
            f"{field}: {' '.join(messages)}" if field != "__all__" else " ".join(messages)
            for field, messages in exc.message_dict.items()
        )
    return " ".join(exc.messages)


class JsonExceptionMiddleware(MiddlewareMixin):
    """
    Render errors raised by /api/ views as {"message": ...} with the
    matching status code. Everything unexpected is logged and becomes a
    generic 500, so no stack trace or internal id reaches the client.
    """

    def process_exception(self, request, exception):
        if not request.path.startswith("/api/"):
            return None

        if isinstance(exception, (ObjectDoesNotExist, Http404)):
            return JsonResponse({"message": "Not found"}, status=404)
        if isinstance(exception, ValidationError):
            body = {"message": validation_message(exception)}
            if hasattr(exception, "error_dict"):
                body["errors"] = exception.message_dict
            return JsonResponse(body, status=400)
        if isinstance(exception, PermissionDenied):
            return JsonResponse({"message": str(exception) or "Forbidden"}, status=403)
        if isinstance(exception, AlreadyConverted):
            return JsonResponse({"message": str(exception)}, status=409)
        if isinstance(exception, ConcurrencyConflict):
            return JsonResponse(
                {"message": "The record was changed concurrently, please retry."}, status=409
            )
        if isinstance(exception, ProtectedError):
            return JsonResponse(
                {"message": "Cannot delete a record that other records still reference."},
                status=409,
            )
        if isinstance(exception, RecomputeFailure):
            logger.error("Balance recompute failed on %s: %s", request.path, exception)
            return JsonResponse({"message": "Failed to recompute balances."}, status=500)

        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return JsonResponse({"message": "Internal server error"}, status=500)
