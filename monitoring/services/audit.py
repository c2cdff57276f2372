import logging
from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model

from monitoring.models import AuditEvent

User = get_user_model()
logger = logging.getLogger(__name__)


def _resolve_user(user) -> Optional[User]:
    # Token principals carry only an id; audit rows point at the real account.
    if isinstance(user, User):
        return user
    user_id = getattr(user, 'id', None)
    if user_id is None:
        return None
    return User.objects.filter(pk=user_id).first()


def log_action(*, user, action: str, object_type: Optional[str] = None, object_id: Any = None,
               detail: Optional[Dict[str, Any]] = None) -> AuditEvent:
    logger.info('audit %s %s=%s', action, object_type, object_id)
    return AuditEvent.objects.create(
        user=_resolve_user(user),
        action=action,
        object_type=object_type,
        object_id=None if object_id is None else str(object_id),
        detail=detail or {},
    )
