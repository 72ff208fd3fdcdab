import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from feedtrade.core.utils import CanWrite, IsAdminRole, create_audit_log
from .models import Season
from .serializers import SeasonSerializer, StartSeasonSerializer
from . import services

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanWrite])
def season_list_create(request):
    """List seasons (newest first) or create an inactive season"""
    if request.method == 'GET':
        return Response(SeasonSerializer(Season.objects.all(), many=True).data)

    serializer = SeasonSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanWrite])
def season_detail(request, pk):
    season = get_object_or_404(Season, pk=pk)

    if request.method == 'GET':
        return Response(SeasonSerializer(season).data)
    elif request.method == 'PATCH':
        serializer = SeasonSerializer(season, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if season.is_active:
            return Response({'error': 'Close the active season before deleting it'}, status=status.HTTP_400_BAD_REQUEST)
        season.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def season_active(request):
    """The active season, or null when none is open"""
    season = services.get_active_season()
    return Response({'season': SeasonSerializer(season).data if season else None})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def season_start(request):
    """Close the current season and open a new active one"""
    serializer = StartSeasonSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    season = services.start_new_season(**serializer.validated_data)
    create_audit_log(
        request=request,
        action='season_start',
        model_name='Season',
        object_id=season.pk,
        object_name=season.name,
    )
    return Response(SeasonSerializer(season).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def season_close(request, pk):
    season = get_object_or_404(Season, pk=pk)
    if not season.is_active:
        return Response({'error': 'Season is already closed'}, status=status.HTTP_400_BAD_REQUEST)
    season = services.close_season(season)
    create_audit_log(
        request=request,
        action='season_close',
        model_name='Season',
        object_id=season.pk,
        object_name=season.name,
    )
    return Response(SeasonSerializer(season).data)
