from django.contrib import admin
from .models import Contact, Account, AccountTransaction, Payment, Check


@admin.register(Contact)
class ContactAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'phone', 'city', 'created_at']
    list_filter = ['type', 'city']
    search_fields = ['name', 'phone', 'email']
    ordering = ['name']


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ['contact', 'balance', 'total_debit', 'total_credit', 'updated_at']
    search_fields = ['contact__name']
    readonly_fields = ['balance', 'total_debit', 'total_credit']


@admin.register(AccountTransaction)
class AccountTransactionAdmin(admin.ModelAdmin):
    list_display = ['account', 'type', 'amount', 'balance_after', 'reference_type', 'reference_id', 'transaction_date', 'deleted_at']
    list_filter = ['type', 'reference_type', 'transaction_date']
    search_fields = ['account__contact__name', 'description']
    ordering = ['-transaction_date', '-id']

    def get_queryset(self, request):
        return AccountTransaction.all_objects.select_related('account__contact')


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['contact', 'direction', 'method', 'amount', 'payment_date', 'deleted_at']
    list_filter = ['direction', 'method', 'payment_date']
    search_fields = ['contact__name', 'description']
    ordering = ['-payment_date']


@admin.register(Check)
class CheckAdmin(admin.ModelAdmin):
    list_display = ['contact', 'check_type', 'direction', 'serial_no', 'amount', 'due_date', 'status', 'deleted_at']
    list_filter = ['check_type', 'direction', 'status', 'due_date']
    search_fields = ['contact__name', 'serial_no', 'bank_name']
    ordering = ['due_date']
    readonly_fields = ['transaction']

    def get_queryset(self, request):
        return Check.all_objects.select_related('contact')
