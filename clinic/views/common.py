"""
Shared list/detail handlers for master-data endpoints.

Each resource view decorates a thin function with its module permission
and delegates here with its queryset and serializer.
"""
from __future__ import annotations

from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.response import Response

from ..services.audit import log_action


def truthy(value) -> bool:
    return str(value or '').lower() in {'1', 'true', 'yes'}


def list_or_create(request, qs, serializer_cls, *, table: str, search_fields=(), on_create=None):
    if request.method == 'GET':
        if truthy(request.query_params.get('active')):
            qs = qs.filter(active=True)
        term = (request.query_params.get('q') or '').strip()
        if term and search_fields:
            cond = Q()
            for f in search_fields:
                cond |= Q(**{f'{f}__icontains': term})
            qs = qs.filter(cond)
        return Response(serializer_cls(qs, many=True).data)

    s = serializer_cls(data=request.data)
    s.is_valid(raise_exception=True)
    with transaction.atomic():
        obj = on_create(s) if on_create else s.save()
        log_action(user=request.user, action=f'{table}.create', table_name=table, record_id=obj.pk)
    return Response(serializer_cls(obj).data, status=status.HTTP_201_CREATED)


def retrieve_update_destroy(request, qs, pk, serializer_cls, *, table: str, on_update=None):
    obj = get_object_or_404(qs, pk=pk)
    if request.method == 'GET':
        return Response(serializer_cls(obj).data)
    if request.method in ('PUT', 'PATCH'):
        s = serializer_cls(obj, data=request.data, partial=request.method == 'PATCH')
        s.is_valid(raise_exception=True)
        with transaction.atomic():
            obj = on_update(s) if on_update else s.save()
            log_action(user=request.user, action=f'{table}.update', table_name=table, record_id=obj.pk,
                       new_data={k: str(v) for k, v in s.validated_data.items()})
        return Response(serializer_cls(obj).data)
    # DELETE; PROTECT relations surface as 409 through the exception handler
    with transaction.atomic():
        obj_id = obj.pk
        obj.delete()
        log_action(user=request.user, action=f'{table}.delete', table_name=table, record_id=obj_id)
    return Response(status=status.HTTP_204_NO_CONTENT)
