import logging
from datetime import datetime, timedelta
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.utils import timezone
from feedtrade.core import kv_store
from feedtrade.parties.serializers import DueCheckSerializer
from feedtrade.seasons.models import Season
from .serializers import (
    SeasonReportSerializer, ProfitSummarySerializer, DashboardKpisSerializer, MonthTotalsSerializer,
)
from .services.dashboard import dashboard_kpis, due_items, monthly_chart
from .services.profit import profit_summary
from .services.season_report import build_season_report

logger = logging.getLogger('feedtrade.reports')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def season_report(request, pk):
    """Financial and operational summary of one season"""
    season = get_object_or_404(Season, pk=pk)
    report = build_season_report(season.pk)
    data = SeasonReportSerializer(report).data
    data['season_name'] = season.name
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def profit_report(request):
    """Profit for a date range (defaults to the last 30 days)"""
    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)

    try:
        if not date_from:
            date_from = timezone.localdate() - timedelta(days=30)
        else:
            date_from = datetime.strptime(date_from, '%Y-%m-%d').date()

        if not date_to:
            date_to = timezone.localdate()
        else:
            date_to = datetime.strptime(date_to, '%Y-%m-%d').date()
    except ValueError:
        return Response({'error': 'Dates must be YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)

    if date_from > date_to:
        return Response({'error': 'date_from must not be after date_to'}, status=status.HTTP_400_BAD_REQUEST)

    return Response(ProfitSummarySerializer(profit_summary(date_from, date_to)).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """Today's and this month's KPIs, open balances and checks due this week"""
    kpis = dashboard_kpis(timezone.localdate())
    data = DashboardKpisSerializer(kpis).data
    data['balance_visible'] = kv_store.get_preferences(request.user.pk)['balance_visible']
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_due_items(request):
    """The next ten open checks due within 30 days"""
    items = due_items(timezone.localdate())
    return Response(DueCheckSerializer(items, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_monthly_chart(request):
    """Sales and purchase totals for the last six months"""
    return Response(MonthTotalsSerializer(monthly_chart(timezone.localdate()), many=True).data)
