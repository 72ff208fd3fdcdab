from decimal import Decimal
from rest_framework import serializers
from feedtrade.seasons.models import Season
from .models import Contact, AccountTransaction, Payment, Check


class ContactSerializer(serializers.ModelSerializer):
    account_id = serializers.IntegerField(source='account.id', read_only=True)
    balance = serializers.DecimalField(source='account.balance', max_digits=16, decimal_places=2, read_only=True)

    class Meta:
        model = Contact
        fields = [
            'id', 'type', 'name', 'phone', 'email', 'address', 'city', 'notes',
            'credit_limit', 'account_id', 'balance', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']


class AccountTransactionSerializer(serializers.ModelSerializer):
    contact_id = serializers.IntegerField(source='account.contact_id', read_only=True)
    contact_name = serializers.CharField(source='account.contact.name', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True)

    class Meta:
        model = AccountTransaction
        fields = [
            'id', 'account', 'contact_id', 'contact_name', 'type', 'amount', 'balance_after',
            'description', 'reference_type', 'reference_id', 'transaction_date', 'season',
            'created_by_username', 'created_at', 'deleted_at'
        ]
        read_only_fields = fields


class TransactionCreateSerializer(serializers.Serializer):
    """Manual ledger entry against a contact's account"""
    contact = serializers.PrimaryKeyRelatedField(queryset=Contact.objects.all())
    type = serializers.ChoiceField(choices=AccountTransaction.TYPE_CHOICES)
    amount = serializers.DecimalField(max_digits=16, decimal_places=2, min_value=Decimal('0.01'))
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    reference_type = serializers.ChoiceField(choices=AccountTransaction.REFERENCE_TYPE_CHOICES, required=False, allow_null=True)
    reference_id = serializers.IntegerField(required=False, allow_null=True)
    transaction_date = serializers.DateField(required=False)
    season = serializers.PrimaryKeyRelatedField(queryset=Season.objects.all(), required=False, allow_null=True)


class PaymentSerializer(serializers.ModelSerializer):
    contact_name = serializers.CharField(source='contact.name', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'contact', 'contact_name', 'account', 'direction', 'method', 'amount',
            'payment_date', 'description', 'transaction', 'created_at', 'deleted_at'
        ]
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    contact = serializers.PrimaryKeyRelatedField(queryset=Contact.objects.all())
    direction = serializers.ChoiceField(choices=Payment.DIRECTION_CHOICES)
    method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES)
    amount = serializers.DecimalField(max_digits=16, decimal_places=2, min_value=Decimal('0.01'))
    payment_date = serializers.DateField(required=False)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    season = serializers.PrimaryKeyRelatedField(queryset=Season.objects.all(), required=False, allow_null=True)


class CheckSerializer(serializers.ModelSerializer):
    contact_name = serializers.CharField(source='contact.name', read_only=True)

    class Meta:
        model = Check
        fields = [
            'id', 'contact', 'contact_name', 'check_type', 'direction', 'serial_no', 'bank_name',
            'branch_name', 'amount', 'issue_date', 'due_date', 'status', 'endorsed_to', 'notes',
            'transaction', 'created_at', 'updated_at', 'deleted_at'
        ]
        read_only_fields = fields


class CheckCreateSerializer(serializers.Serializer):
    contact = serializers.PrimaryKeyRelatedField(queryset=Contact.objects.all())
    check_type = serializers.ChoiceField(choices=Check.TYPE_CHOICES, default='check')
    direction = serializers.ChoiceField(choices=Check.DIRECTION_CHOICES)
    serial_no = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    bank_name = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    branch_name = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    amount = serializers.DecimalField(max_digits=16, decimal_places=2, min_value=Decimal('0.01'))
    issue_date = serializers.DateField(required=False)
    due_date = serializers.DateField()
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    season = serializers.PrimaryKeyRelatedField(queryset=Season.objects.all(), required=False, allow_null=True)

    def validate(self, data):
        issue_date = data.get('issue_date')
        if issue_date and data['due_date'] < issue_date:
            raise serializers.ValidationError({'due_date': 'Due date cannot be before the issue date'})
        return data


class CheckStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Check.STATUS_CHOICES)


class CheckEndorseSerializer(serializers.Serializer):
    contact = serializers.PrimaryKeyRelatedField(queryset=Contact.objects.all())
    endorse_date = serializers.DateField(required=False)


class DueCheckSerializer(serializers.Serializer):
    id = serializers.IntegerField(source='check.id')
    check_type = serializers.CharField(source='check.check_type')
    direction = serializers.CharField(source='check.direction')
    contact_id = serializers.IntegerField(source='check.contact_id')
    contact_name = serializers.CharField(source='check.contact.name')
    contact_phone = serializers.CharField(source='check.contact.phone', allow_null=True)
    serial_no = serializers.CharField(source='check.serial_no', allow_null=True)
    amount = serializers.DecimalField(source='check.amount', max_digits=16, decimal_places=2)
    due_date = serializers.DateField(source='check.due_date')
    status = serializers.CharField(source='check.status')
    days_left = serializers.IntegerField()
    overdue = serializers.BooleanField()


class AccountSummarySerializer(serializers.Serializer):
    account_id = serializers.IntegerField()
    contact_id = serializers.IntegerField()
    contact_name = serializers.CharField()
    contact_type = serializers.CharField()
    balance = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_debit = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_credit = serializers.DecimalField(max_digits=16, decimal_places=2)


class LedgerEntrySerializer(AccountTransactionSerializer):
    """Transaction row with the balance after it among live rows"""
    running_balance = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)

    class Meta(AccountTransactionSerializer.Meta):
        fields = AccountTransactionSerializer.Meta.fields + ['running_balance']
        read_only_fields = fields


class ContactLedgerSerializer(serializers.Serializer):
    contact_id = serializers.IntegerField()
    account_id = serializers.IntegerField()
    balance = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_debit = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_credit = serializers.DecimalField(max_digits=16, decimal_places=2)
    transactions = LedgerEntrySerializer(many=True)
