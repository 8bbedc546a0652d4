import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The request conflicts with the current state of the resource.'
    default_code = 'conflict'


class CageFull(Conflict):
    default_detail = 'Cage is at full capacity.'
    default_code = 'cage_full'


class CageUnavailable(Conflict):
    default_detail = 'Cage is not available for assignment.'
    default_code = 'cage_unavailable'


class PurchaseOrderClosed(Conflict):
    default_detail = 'Purchase order is already received or cancelled.'
    default_code = 'po_closed'


def _message(data):
    if isinstance(data, dict):
        return data.get('detail') or data
    if isinstance(data, list) and len(data) == 1:
        return str(data[0])
    return data


def api_exception_handler(exc, context):
    if isinstance(exc, ProtectedError):
        return Response(
            {'ok': False, 'error': {'code': 'protected', 'message': 'Record is still referenced and cannot be deleted.'}},
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        return Response({'ok': False, 'error': {'code': 'invalid', 'message': detail}}, status=400)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.exception('unhandled error in %s', view.__class__.__name__ if view else '-')
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)

    code = 'not_found' if resp.status_code == 404 else 'api_error'
    if isinstance(exc, APIException):
        codes = exc.get_codes()
        code = codes if isinstance(codes, str) else 'invalid'
    return Response({'ok': False, 'error': {'code': code, 'message': _message(resp.data)}}, status=resp.status_code)
