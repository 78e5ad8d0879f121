"""
Legacy API flavour: DRF function views served in the gateway process.

Registration is public (the emergency-department form posts here); every
other operation requires an authenticated caller. The views only marshal
requests and responses; all rules live in ``EscortService``.
"""
from __future__ import annotations

from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from escorts import envelope
from escorts.exceptions import NotFoundError
from escorts.permissions import IsSubmitOrAuthenticated, SubmitRateThrottle
from escorts.services.escorts import EscortService, client_ip, serialize
from escorts.signals import escort_api_event

BACKEND = 'legacy'


def _emit(request, event, record=None):
    escort_api_event.send(sender=BACKEND, request=request, event=event, record=record)


def _lookup(request, fn, *args):
    try:
        return fn(*args)
    except NotFoundError:
        _emit(request, 'lookup_failed')
        raise


@api_view(['GET', 'POST'])
@permission_classes([IsSubmitOrAuthenticated])
@throttle_classes([SubmitRateThrottle])
def escort_collection(request):
    service = EscortService()
    if request.method == 'POST':
        escort = service.create_record(request.data, source_ip=client_ip(request))
        _emit(request, 'created', escort)
        return Response(envelope.success('Escort created successfully', serialize(escort)),
                        status=status.HTTP_201_CREATED)
    records, meta = service.list_records(request.query_params)
    _emit(request, 'listed')
    return Response(envelope.success(
        'Escorts retrieved successfully', [serialize(e) for e in records], meta=meta,
    ))


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def escort_detail(request, pk: int):
    service = EscortService()
    if request.method == 'GET':
        escort = _lookup(request, service.get_record, pk)
        _emit(request, 'viewed', escort)
        return Response(envelope.success('Escort retrieved successfully', serialize(escort)))
    if request.method == 'DELETE':
        escort = _lookup(request, service.delete_record, pk)
        _emit(request, 'deleted', escort)
        return Response(envelope.success('Escort deleted successfully'))
    escort = _lookup(request, service.update_record, pk, request.data)
    _emit(request, 'updated', escort)
    return Response(envelope.success('Escort updated successfully', serialize(escort)))


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def escort_status(request, pk: int):
    escort = _lookup(request, EscortService().update_status, pk, request.data)
    _emit(request, 'status_updated', escort)
    return Response(envelope.success('Escort status updated successfully', serialize(escort)))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def escort_image(request, pk: int):
    service = EscortService()
    if request.method == 'POST':
        escort = _lookup(request, service.upload_image, pk, request.data)
        _emit(request, 'image_uploaded', escort)
        return Response(envelope.success('Image uploaded successfully', serialize(escort)))
    if request.query_params.get('raw', '').lower() in {'1', 'true', 'yes', 'on'}:
        content, content_type = _lookup(request, service.get_image_bytes, pk)
        return HttpResponse(content, content_type=content_type)
    data_url = _lookup(request, service.get_image_encoded, pk)
    return Response(envelope.success('Image retrieved successfully', {'imageData': data_url}))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_stats(request):
    return Response(envelope.success(
        'Dashboard statistics retrieved successfully', EscortService().dashboard_stats(),
    ))
