# Generated manually
# Freight owed per carrier: charges minus payments over live transactions.

from django.db import migrations


CREATE_VIEW = """
CREATE VIEW v_carrier_balance AS
SELECT
    c.id AS carrier_id,
    c.name AS carrier_name,
    c.phone AS phone,
    COALESCE(SUM(CASE WHEN t.type = 'freight_charge' THEN t.amount ELSE 0 END), 0) AS total_freight,
    COALESCE(SUM(CASE WHEN t.type = 'payment' THEN t.amount ELSE 0 END), 0) AS total_paid,
    COALESCE(SUM(CASE WHEN t.type = 'freight_charge' THEN t.amount ELSE -t.amount END), 0) AS balance
FROM carriers c
LEFT JOIN carrier_transactions t ON t.carrier_id = c.id AND t.deleted_at IS NULL
GROUP BY c.id, c.name, c.phone
"""

DROP_VIEW = "DROP VIEW IF EXISTS v_carrier_balance"


class Migration(migrations.Migration):

    dependencies = [
        ('logistics', '0001_initial'),
    ]

    operations = [
        migrations.RunSQL(CREATE_VIEW, DROP_VIEW),
    ]
