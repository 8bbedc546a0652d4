import logging
from typing import Optional, Any, Dict

from django.contrib.auth import get_user_model

from clinic.models import AuditLog

User = get_user_model()
logger = logging.getLogger(__name__)


def log_action(*, user: Optional[User], action: str, table_name: str = '', record_id: Any = None,
               old_data: Optional[Dict[str, Any]] = None, new_data: Optional[Dict[str, Any]] = None) -> AuditLog:
    logger.debug('audit action=%s table=%s record=%s', action, table_name, record_id)
    return AuditLog.objects.create(
        user=user if getattr(user, 'pk', None) else None,
        action=action,
        table_name=table_name,
        record_id='' if record_id is None else str(record_id),
        old_data=old_data,
        new_data=new_data,
    )
