# Generated manually
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

CURRENCIES = [('EUR', 'Euro'), ('GBP', 'British Pound'), ('USD', 'US Dollar'), ('CHF', 'Swiss Franc')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('people', '0001_initial'),
        ('projects', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Funder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('type', models.CharField(choices=[('government', 'Government'), ('eu', 'European Union'), ('charity', 'Charity / Foundation'), ('industry', 'Industry'), ('university', 'University'), ('other', 'Other')], default='other', max_length=20)),
                ('country', models.CharField(blank=True, max_length=100)),
                ('website', models.URLField(blank=True, max_length=2048)),
                ('contact_email', models.EmailField(blank=True, max_length=254)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_funders', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'funders',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='FundingAccount',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('account_number', models.CharField(max_length=100)),
                ('account_name', models.CharField(max_length=200)),
                ('account_type', models.CharField(choices=[('main', 'Main'), ('equipment', 'Equipment'), ('consumables', 'Consumables'), ('travel', 'Travel'), ('personnel', 'Personnel'), ('other', 'Other')], default='main', max_length=20)),
                ('total_budget', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('spent_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('committed_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('remaining_budget', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('currency', models.CharField(choices=CURRENCIES, default='EUR', max_length=3)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('closed', 'Closed'), ('suspended', 'Suspended'), ('pending', 'Pending')], default='active', max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_funding_accounts', to=settings.AUTH_USER_MODEL)),
                ('funder', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='accounts', to='funding.funder')),
                ('lab', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='funding_accounts', to='people.lab')),
                ('master_project', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='funding_accounts', to='projects.masterproject')),
            ],
            options={
                'db_table': 'funding_accounts',
                'ordering': ['account_number'],
                'indexes': [
                    models.Index(fields=['lab', 'status'], name='idx_account_lab_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FundingAllocation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('PERSON', 'Person'), ('PROJECT', 'Project')], max_length=10)),
                ('allocated_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('soft_limit', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('current_spent', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('current_committed', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('remaining_budget', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('currency', models.CharField(choices=CURRENCIES, default='EUR', max_length=3)),
                ('status', models.CharField(choices=[('active', 'Active'), ('exhausted', 'Exhausted'), ('suspended', 'Suspended'), ('archived', 'Archived')], default='active', max_length=20)),
                ('low_balance_warning_threshold', models.PositiveSmallIntegerField(blank=True, help_text='Percentage used at which to warn (e.g. 80)', null=True)),
                ('last_transaction_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_by_label', models.CharField(blank=True, max_length=100)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_allocations', to=settings.AUTH_USER_MODEL)),
                ('funding_account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='allocations', to='funding.fundingaccount')),
                ('lab', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='funding_allocations', to='people.lab')),
                ('person', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='funding_allocations', to='people.personprofile')),
                ('project', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='funding_allocations', to='projects.masterproject')),
            ],
            options={
                'db_table': 'funding_allocations',
                'ordering': ['funding_account', 'type', 'id'],
                'indexes': [
                    models.Index(fields=['lab', 'type'], name='idx_allocation_lab_type'),
                    models.Index(fields=['status'], name='idx_allocation_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FundingTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('currency', models.CharField(choices=CURRENCIES, default='EUR', max_length=3)),
                ('type', models.CharField(choices=[('ORDER_COMMIT', 'Order Committed'), ('ORDER_RECEIVED', 'Order Received'), ('ORDER_CANCELLED', 'Order Cancelled'), ('ADJUSTMENT', 'Adjustment'), ('REFUND', 'Refund'), ('TRANSFER', 'Transfer'), ('ALLOCATION_CREATED', 'Allocation Created'), ('ALLOCATION_ADJUSTED', 'Allocation Adjusted')], max_length=30)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('FINAL', 'Final'), ('CANCELLED', 'Cancelled')], default='FINAL', max_length=20)),
                ('description', models.CharField(blank=True, max_length=500)),
                ('invoice_number', models.CharField(blank=True, max_length=100)),
                ('po_number', models.CharField(blank=True, max_length=100)),
                ('supplier_name', models.CharField(blank=True, max_length=200)),
                ('notes', models.TextField(blank=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('finalized_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('allocation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='transactions', to='funding.fundingallocation')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='funding_transactions', to=settings.AUTH_USER_MODEL)),
                ('funding_account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='transactions', to='funding.fundingaccount')),
                ('lab', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='funding_transactions', to='people.lab')),
            ],
            options={
                'db_table': 'funding_transactions',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['type', 'status'], name='idx_transaction_type_status'),
                    models.Index(fields=['-created_at'], name='idx_transaction_created'),
                ],
            },
        ),
    ]
