import logging
import secrets
import string

from ..conf import app_setting

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_uppercase + string.digits
UID_LENGTH = 6


def generate_uid(prefix: str) -> str:
    suffix = "".join(secrets.choice(ALPHABET) for _ in range(UID_LENGTH))
    return f"{prefix}-{suffix}"


def assign_uid(instance) -> str:
    """
    Fill the human-readable code (INV-XXXXXX, EST-XXXXXX, ...) on a model
    instance before its first save.

    The model declares UID_PREFIX and uid_field. Candidates that already
    exist are skipped; the unique constraint on the column still guards
    against a concurrent insert picking the same code.
    """
    field = instance.uid_field
    current = getattr(instance, field)
    if current:
        return current

    model = type(instance)
    attempts = app_setting("UID_MAX_ATTEMPTS")
    for _ in range(attempts):
        candidate = generate_uid(instance.UID_PREFIX)
        if not model._default_manager.filter(**{field: candidate}).exists():
            setattr(instance, field, candidate)
            return candidate
        logger.warning("%s code collision on %s, retrying", model.__name__, candidate)

    raise RuntimeError(
        f"Could not allocate a unique {model.__name__} code after {attempts} attempts"
    )
