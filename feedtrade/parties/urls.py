from django.urls import path
from .views import (
    contact_list_create, contact_detail, contact_ledger,
    account_summary_list, account_check,
    transaction_list_create, transaction_detail, transaction_restore,
    payment_list_create, payment_detail, payment_restore,
    check_list_create, check_detail, check_endorse, check_due_list,
)

urlpatterns = [
    # Contacts
    path('contacts/', contact_list_create, name='contact-list-create'),
    path('contacts/<int:pk>/', contact_detail, name='contact-detail'),
    path('contacts/<int:contact_id>/ledger/', contact_ledger, name='contact-ledger'),

    # Accounts
    path('accounts/summary/', account_summary_list, name='account-summary-list'),
    path('accounts/<int:pk>/check/', account_check, name='account-check'),

    # Account transactions
    path('transactions/', transaction_list_create, name='transaction-list-create'),
    path('transactions/<int:pk>/', transaction_detail, name='transaction-detail'),
    path('transactions/<int:pk>/restore/', transaction_restore, name='transaction-restore'),

    # Payments
    path('payments/', payment_list_create, name='payment-list-create'),
    path('payments/<int:pk>/', payment_detail, name='payment-detail'),
    path('payments/<int:pk>/restore/', payment_restore, name='payment-restore'),

    # Checks and promissory notes
    path('checks/', check_list_create, name='check-list-create'),
    path('checks/due/', check_due_list, name='check-due-list'),
    path('checks/<int:pk>/', check_detail, name='check-detail'),
    path('checks/<int:pk>/endorse/', check_endorse, name='check-endorse'),
]
