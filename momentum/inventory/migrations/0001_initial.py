# Generated manually
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('people', '0001_initial'),
        ('funding', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='InventoryItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_name', models.CharField(max_length=255)),
                ('cat_num', models.CharField(blank=True, max_length=100)),
                ('supplier', models.CharField(blank=True, max_length=200)),
                ('current_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
                ('unit', models.CharField(blank=True, max_length=50)),
                ('price_ex_vat', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('currency', models.CharField(choices=[('EUR', 'Euro'), ('GBP', 'British Pound'), ('USD', 'US Dollar'), ('CHF', 'Swiss Franc')], default='EUR', max_length=3)),
                ('min_quantity', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ('burn_rate_per_week', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
                ('inventory_level', models.CharField(choices=[('empty', 'Empty'), ('low', 'Low'), ('medium', 'Medium'), ('full', 'Full')], default='empty', max_length=10)),
                ('received_date', models.DateTimeField(blank=True, null=True)),
                ('last_ordered_date', models.DateField(blank=True, null=True)),
                ('category', models.CharField(blank=True, max_length=100)),
                ('subcategory', models.CharField(blank=True, max_length=255)),
                ('notes', models.TextField(blank=True, max_length=10000)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('charge_to_account', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inventory_items', to='funding.fundingaccount')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_inventory_items', to=settings.AUTH_USER_MODEL)),
                ('lab', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='inventory_items', to='people.lab')),
            ],
            options={
                'db_table': 'inventory_items',
                'ordering': ['product_name'],
                'indexes': [
                    models.Index(fields=['cat_num', 'supplier'], name='idx_inventory_catnum_supplier'),
                    models.Index(fields=['inventory_level'], name='idx_inventory_level'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Equipment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('make', models.CharField(blank=True, max_length=100)),
                ('model', models.CharField(blank=True, max_length=100)),
                ('serial_number', models.CharField(blank=True, max_length=100)),
                ('location', models.CharField(blank=True, max_length=200)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('lab', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='equipment', to='people.lab')),
                ('supplies', models.ManyToManyField(blank=True, related_name='equipment_devices', to='inventory.inventoryitem')),
            ],
            options={
                'db_table': 'equipment',
                'ordering': ['name'],
                'verbose_name_plural': 'equipment',
            },
        ),
    ]
