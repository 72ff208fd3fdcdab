# Generated manually
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('purchasing', '0001_initial'),
        ('sales', '0001_initial'),
        ('seasons', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Carrier',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('phone', models.CharField(blank=True, max_length=20, null=True)),
                ('city', models.CharField(blank=True, max_length=100, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'carriers',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='CarrierBalance',
            fields=[
                ('carrier_id', models.BigIntegerField(primary_key=True, serialize=False)),
                ('carrier_name', models.CharField(max_length=200)),
                ('phone', models.CharField(max_length=20, null=True)),
                ('total_freight', models.DecimalField(decimal_places=2, max_digits=16)),
                ('total_paid', models.DecimalField(decimal_places=2, max_digits=16)),
                ('balance', models.DecimalField(decimal_places=2, max_digits=16)),
            ],
            options={
                'db_table': 'v_carrier_balance',
                'managed': False,
            },
        ),
        migrations.CreateModel(
            name='Vehicle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('plate', models.CharField(max_length=20, unique=True)),
                ('driver_name', models.CharField(blank=True, max_length=200, null=True)),
                ('driver_phone', models.CharField(blank=True, max_length=20, null=True)),
                ('vehicle_type', models.CharField(blank=True, max_length=50, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('carrier', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='vehicles', to='logistics.carrier')),
            ],
            options={
                'db_table': 'vehicles',
                'ordering': ['plate'],
            },
        ),
        migrations.CreateModel(
            name='Delivery',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('delivery_date', models.DateField(default=django.utils.timezone.localdate)),
                ('ticket_no', models.CharField(blank=True, max_length=50, null=True)),
                ('gross_weight', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('tare_weight', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('net_weight', models.DecimalField(decimal_places=2, max_digits=14)),
                ('vehicle_plate', models.CharField(blank=True, max_length=20, null=True)),
                ('driver_name', models.CharField(blank=True, max_length=200, null=True)),
                ('carrier_name', models.CharField(blank=True, max_length=200, null=True)),
                ('carrier_phone', models.CharField(blank=True, max_length=20, null=True)),
                ('freight_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('freight_payer', models.CharField(choices=[('customer', 'Customer'), ('me', 'Me'), ('supplier', 'Supplier')], default='me', max_length=20)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='deliveries', to=settings.AUTH_USER_MODEL)),
                ('purchase', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='deliveries', to='purchasing.purchase')),
                ('sale', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='deliveries', to='sales.sale')),
                ('season', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='deliveries', to='seasons.season')),
            ],
            options={
                'db_table': 'deliveries',
                'ordering': ['-delivery_date', '-id'],
                'constraints': [models.CheckConstraint(condition=models.Q(('sale__isnull', False), ('purchase__isnull', False), _negated=True), name='delivery_sale_xor_purchase')],
            },
        ),
        migrations.CreateModel(
            name='CarrierTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('type', models.CharField(choices=[('freight_charge', 'Freight Charge'), ('payment', 'Payment')], max_length=20)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('description', models.TextField(blank=True, null=True)),
                ('reference_id', models.BigIntegerField(blank=True, db_index=True, null=True)),
                ('transaction_date', models.DateField(default=django.utils.timezone.localdate)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('carrier', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='logistics.carrier')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='carrier_transactions', to=settings.AUTH_USER_MODEL)),
                ('season', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='carrier_transactions', to='seasons.season')),
            ],
            options={
                'db_table': 'carrier_transactions',
                'ordering': ['-transaction_date', '-id'],
            },
        ),
    ]
