from rest_framework import serializers


class RankedEntrySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    value = serializers.DecimalField(max_digits=20, decimal_places=2)


class FeedShareSerializer(serializers.Serializer):
    name = serializers.CharField()
    tonnage = serializers.DecimalField(max_digits=20, decimal_places=2)


class SeasonReportSerializer(serializers.Serializer):
    season_id = serializers.IntegerField()
    total_deliveries = serializers.IntegerField()
    total_tonnage = serializers.DecimalField(max_digits=20, decimal_places=2)
    total_revenue = serializers.DecimalField(max_digits=20, decimal_places=2)
    total_cost = serializers.DecimalField(max_digits=20, decimal_places=2)
    total_freight = serializers.DecimalField(max_digits=20, decimal_places=2)
    net_profit = serializers.DecimalField(max_digits=20, decimal_places=2)
    margin = serializers.DecimalField(max_digits=20, decimal_places=2)
    top_customers = RankedEntrySerializer(many=True)
    top_suppliers = RankedEntrySerializer(many=True)
    top_carriers = RankedEntrySerializer(many=True)
    feed_distribution = FeedShareSerializer(many=True)


class ProfitSummarySerializer(serializers.Serializer):
    date_from = serializers.DateField()
    date_to = serializers.DateField()
    total_revenue = serializers.DecimalField(max_digits=20, decimal_places=2)
    total_cost = serializers.DecimalField(max_digits=20, decimal_places=2)
    total_freight = serializers.DecimalField(max_digits=20, decimal_places=2)
    net_profit = serializers.DecimalField(max_digits=20, decimal_places=2)
    margin = serializers.DecimalField(max_digits=20, decimal_places=2)


class ContactBalanceSerializer(serializers.Serializer):
    contact_id = serializers.IntegerField()
    name = serializers.CharField()
    phone = serializers.CharField(allow_null=True)
    type = serializers.CharField()
    amount = serializers.DecimalField(max_digits=20, decimal_places=2)
    credit_limit = serializers.DecimalField(max_digits=20, decimal_places=2)


class DashboardKpisSerializer(serializers.Serializer):
    as_of = serializers.DateField()
    today_truck_count = serializers.IntegerField()
    today_tonnage = serializers.DecimalField(max_digits=20, decimal_places=2)
    today_profit = serializers.DecimalField(max_digits=20, decimal_places=2)
    month_profit = serializers.DecimalField(max_digits=20, decimal_places=2)
    monthly_revenue = serializers.DecimalField(max_digits=20, decimal_places=2)
    monthly_tonnage = serializers.DecimalField(max_digits=20, decimal_places=2)
    monthly_freight = serializers.DecimalField(max_digits=20, decimal_places=2)
    pending_receivables = serializers.DecimalField(max_digits=20, decimal_places=2)
    pending_payables = serializers.DecimalField(max_digits=20, decimal_places=2)
    due_check_count = serializers.IntegerField()
    due_check_total = serializers.DecimalField(max_digits=20, decimal_places=2)
    overdue_check_count = serializers.IntegerField()
    customer_balances = ContactBalanceSerializer(many=True)
    supplier_balances = ContactBalanceSerializer(many=True)


class MonthTotalsSerializer(serializers.Serializer):
    month = serializers.DateField()
    sales = serializers.DecimalField(max_digits=20, decimal_places=2)
    purchases = serializers.DecimalField(max_digits=20, decimal_places=2)
