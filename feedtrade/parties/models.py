from django.db import models
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils import timezone
from decimal import Decimal
from feedtrade.core.models import User, SoftDeleteModel


class Contact(models.Model):
    """Suppliers and customers (a contact may be both)"""
    TYPE_CHOICES = [
        ('supplier', 'Supplier'),
        ('customer', 'Customer'),
        ('both', 'Supplier & Customer'),
    ]

    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    credit_limit = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'contacts'
        ordering = ['name']


class Account(models.Model):
    """Running balance of a contact: balance = total_debit - total_credit"""
    contact = models.OneToOneField(Contact, on_delete=models.CASCADE, related_name='account')
    balance = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal('0.00'))
    total_debit = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal('0.00'))
    total_credit = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.contact.name} ({self.balance})"

    class Meta:
        db_table = 'accounts'


class AccountTransaction(SoftDeleteModel):
    """Debit/credit line on an account"""
    TYPE_CHOICES = [
        ('debit', 'Debit'),
        ('credit', 'Credit'),
    ]
    REFERENCE_TYPE_CHOICES = [
        ('sale', 'Sale'),
        ('purchase', 'Purchase'),
        ('payment', 'Payment'),
        ('delivery', 'Delivery'),
    ]

    # An account with any transaction, voided ones included, cannot be deleted
    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name='transactions')
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=16, decimal_places=2)
    balance_after = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal('0.00'))
    description = models.TextField(blank=True, null=True)
    reference_type = models.CharField(max_length=20, choices=REFERENCE_TYPE_CHOICES, blank=True, null=True)
    # Id of the referenced sale/purchase/payment/delivery row; not a foreign key
    reference_id = models.BigIntegerField(blank=True, null=True)
    transaction_date = models.DateField(default=timezone.localdate)
    season = models.ForeignKey('seasons.Season', on_delete=models.SET_NULL, null=True, blank=True, related_name='account_transactions')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='account_transactions')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.account.contact.name} - {self.type} - {self.amount}"

    @property
    def signed_amount(self):
        return self.amount if self.type == 'debit' else -self.amount

    class Meta:
        db_table = 'account_transactions'
        ordering = ['-transaction_date', '-created_at', '-id']
        indexes = [
            models.Index(fields=['account', 'transaction_date'], name='acct_tx_account_date_idx'),
            models.Index(fields=['reference_type', 'reference_id'], name='acct_tx_reference_idx'),
        ]


class Payment(SoftDeleteModel):
    """Money received from or paid to a contact"""
    DIRECTION_CHOICES = [
        ('inbound', 'Inbound'),
        ('outbound', 'Outbound'),
    ]
    METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('bank_transfer', 'Bank Transfer'),
        ('check', 'Check'),
        ('promissory_note', 'Promissory Note'),
    ]

    contact = models.ForeignKey(Contact, on_delete=models.PROTECT, related_name='payments')
    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name='payments')
    direction = models.CharField(max_length=10, choices=DIRECTION_CHOICES)
    method = models.CharField(max_length=20, choices=METHOD_CHOICES)
    amount = models.DecimalField(max_digits=16, decimal_places=2)
    payment_date = models.DateField(default=timezone.localdate)
    description = models.TextField(blank=True, null=True)
    transaction = models.OneToOneField(AccountTransaction, on_delete=models.SET_NULL, null=True, blank=True, related_name='payment')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='payments')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.contact.name} - {self.direction} - {self.amount}"

    class Meta:
        db_table = 'payments'
        ordering = ['-payment_date', '-id']


class Check(SoftDeleteModel):
    """Check or promissory note received from or given to a contact"""
    TYPE_CHOICES = [
        ('check', 'Check'),
        ('promissory_note', 'Promissory Note'),
    ]
    DIRECTION_CHOICES = [
        ('received', 'Received'),
        ('given', 'Given'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('deposited', 'Deposited'),
        ('cleared', 'Cleared'),
        ('bounced', 'Bounced'),
        ('endorsed', 'Endorsed'),
        ('cancelled', 'Cancelled'),
    ]
    OPEN_STATUSES = ('pending', 'deposited')

    contact = models.ForeignKey(Contact, on_delete=models.PROTECT, related_name='checks')
    check_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='check')
    direction = models.CharField(max_length=10, choices=DIRECTION_CHOICES)
    serial_no = models.CharField(max_length=50, blank=True, null=True)
    bank_name = models.CharField(max_length=100, blank=True, null=True)
    branch_name = models.CharField(max_length=100, blank=True, null=True)
    amount = models.DecimalField(max_digits=16, decimal_places=2)
    issue_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    endorsed_to = models.CharField(max_length=200, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    transaction = models.OneToOneField(AccountTransaction, on_delete=models.SET_NULL, null=True, blank=True, related_name='check_record')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='checks')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.get_check_type_display()} {self.serial_no or self.pk} - {self.amount}"

    @property
    def is_open(self):
        return self.status in self.OPEN_STATUSES

    class Meta:
        db_table = 'checks'
        ordering = ['due_date', 'id']
        indexes = [
            models.Index(fields=['status', 'due_date'], name='checks_status_due_idx'),
        ]


class AccountSummary(models.Model):
    """Read-only rows of the v_account_summary view"""
    account_id = models.BigIntegerField(primary_key=True)
    contact_id = models.BigIntegerField()
    contact_name = models.CharField(max_length=200)
    contact_type = models.CharField(max_length=20)
    balance = models.DecimalField(max_digits=16, decimal_places=2)
    total_debit = models.DecimalField(max_digits=16, decimal_places=2)
    total_credit = models.DecimalField(max_digits=16, decimal_places=2)

    class Meta:
        managed = False
        db_table = 'v_account_summary'


@receiver(post_save, sender=Contact, dispatch_uid='parties_create_account')
def create_account_for_contact(sender, instance, created, raw=False, **kwargs):
    """Every contact gets exactly one account"""
    if created and not raw:
        Account.objects.get_or_create(contact=instance)
