# Generated manually
# Per-account balance with live debit/credit totals. Readers fall back to an
# equivalent ORM join when this view is absent.

from django.db import migrations


CREATE_VIEW = """
CREATE VIEW v_account_summary AS
SELECT
    a.id AS account_id,
    c.id AS contact_id,
    c.name AS contact_name,
    c.type AS contact_type,
    a.balance AS balance,
    COALESCE(SUM(CASE WHEN t.type = 'debit' THEN t.amount ELSE 0 END), 0) AS total_debit,
    COALESCE(SUM(CASE WHEN t.type = 'credit' THEN t.amount ELSE 0 END), 0) AS total_credit
FROM accounts a
JOIN contacts c ON c.id = a.contact_id
LEFT JOIN account_transactions t ON t.account_id = a.id AND t.deleted_at IS NULL
GROUP BY a.id, c.id, c.name, c.type, a.balance
"""

DROP_VIEW = "DROP VIEW IF EXISTS v_account_summary"


class Migration(migrations.Migration):

    dependencies = [
        ('parties', '0001_initial'),
    ]

    operations = [
        migrations.RunSQL(CREATE_VIEW, DROP_VIEW),
    ]
