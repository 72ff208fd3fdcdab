# Generated manually
# Stock on hand with warehouse and feed type names and stock value.

from django.db import migrations


CREATE_VIEW = """
CREATE VIEW v_inventory_summary AS
SELECT
    i.id AS inventory_id,
    i.warehouse_id AS warehouse_id,
    i.feed_type_id AS feed_type_id,
    w.name AS warehouse_name,
    f.name AS feed_type_name,
    i.quantity_kg AS quantity_kg,
    i.unit_cost AS unit_cost,
    i.quantity_kg * i.unit_cost AS total_value,
    i.last_updated AS last_updated
FROM inventory i
JOIN warehouses w ON w.id = i.warehouse_id
JOIN feed_types f ON f.id = i.feed_type_id
"""

DROP_VIEW = "DROP VIEW IF EXISTS v_inventory_summary"


class Migration(migrations.Migration):

    dependencies = [
        ('inventory', '0001_initial'),
    ]

    operations = [
        migrations.RunSQL(CREATE_VIEW, DROP_VIEW),
    ]
