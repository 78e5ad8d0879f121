"""
Primary API flavour: class-based DRF views served by the primary process.

Routes, permissions, messages and status codes match the legacy flavour;
both call ``EscortService`` and render through ``escorts.envelope``.
"""
from __future__ import annotations

from django.http import HttpResponse
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from escorts import envelope
from escorts.exceptions import NotFoundError
from escorts.permissions import IsSubmitOrAuthenticated, SubmitRateThrottle
from escorts.services.escorts import EscortService, client_ip, serialize
from escorts.signals import escort_api_event


class EscortAPIView(APIView):
    backend = 'primary'
    permission_classes = [IsAuthenticated]
    service_class = EscortService

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.service = self.service_class()

    def emit(self, event, record=None):
        escort_api_event.send(sender=self.backend, request=self.request, event=event, record=record)

    def lookup(self, fn, *args):
        try:
            return fn(*args)
        except NotFoundError:
            self.emit('lookup_failed')
            raise


class EscortCollectionView(EscortAPIView):
    permission_classes = [IsSubmitOrAuthenticated]
    throttle_classes = [SubmitRateThrottle]

    def get(self, request):
        records, meta = self.service.list_records(request.query_params)
        self.emit('listed')
        return Response(envelope.success(
            'Escorts retrieved successfully', [serialize(e) for e in records], meta=meta,
        ))

    def post(self, request):
        escort = self.service.create_record(request.data, source_ip=client_ip(request))
        self.emit('created', escort)
        return Response(envelope.success('Escort created successfully', serialize(escort)),
                        status=status.HTTP_201_CREATED)


class EscortDetailView(EscortAPIView):

    def get(self, request, pk: int):
        escort = self.lookup(self.service.get_record, pk)
        self.emit('viewed', escort)
        return Response(envelope.success('Escort retrieved successfully', serialize(escort)))

    def put(self, request, pk: int):
        escort = self.lookup(self.service.update_record, pk, request.data)
        self.emit('updated', escort)
        return Response(envelope.success('Escort updated successfully', serialize(escort)))

    patch = put

    def delete(self, request, pk: int):
        escort = self.lookup(self.service.delete_record, pk)
        self.emit('deleted', escort)
        return Response(envelope.success('Escort deleted successfully'))


class EscortStatusView(EscortAPIView):

    def patch(self, request, pk: int):
        escort = self.lookup(self.service.update_status, pk, request.data)
        self.emit('status_updated', escort)
        return Response(envelope.success('Escort status updated successfully', serialize(escort)))


class EscortImageView(EscortAPIView):

    def get(self, request, pk: int):
        if request.query_params.get('raw', '').lower() in {'1', 'true', 'yes', 'on'}:
            content, content_type = self.lookup(self.service.get_image_bytes, pk)
            return HttpResponse(content, content_type=content_type)
        data_url = self.lookup(self.service.get_image_encoded, pk)
        return Response(envelope.success('Image retrieved successfully', {'imageData': data_url}))

    def post(self, request, pk: int):
        escort = self.lookup(self.service.upload_image, pk, request.data)
        self.emit('image_uploaded', escort)
        return Response(envelope.success('Image uploaded successfully', serialize(escort)))


class DashboardStatsView(EscortAPIView):

    def get(self, request):
        return Response(envelope.success(
            'Dashboard statistics retrieved successfully', self.service.dashboard_stats(),
        ))
