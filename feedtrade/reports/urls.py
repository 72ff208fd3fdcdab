from django.urls import path
from .views import season_report, profit_report, dashboard, dashboard_due_items, dashboard_monthly_chart

urlpatterns = [
    path('seasons/<int:pk>/report/', season_report, name='season-report'),
    path('reports/profit/', profit_report, name='profit-report'),
    path('reports/dashboard/', dashboard, name='dashboard'),
    path('reports/due-items/', dashboard_due_items, name='dashboard-due-items'),
    path('reports/monthly/', dashboard_monthly_chart, name='dashboard-monthly-chart'),
]
