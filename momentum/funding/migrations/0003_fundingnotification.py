# Generated manually
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('funding', '0002_fundingtransaction_order'),
        ('people', '0002_lab_default_funding_account'),
    ]

    operations = [
        migrations.CreateModel(
            name='FundingNotification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('ALLOCATION_CREATED', 'Allocation Created'), ('FUNDING_LOW_BALANCE', 'Low Balance'), ('FUNDING_EXHAUSTED', 'Budget Exhausted'), ('FUNDING_EXHAUSTED_PI', 'Researcher Budget Exhausted')], max_length=30)),
                ('title', models.CharField(max_length=200)),
                ('message', models.TextField()),
                ('priority', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High')], default='medium', max_length=10)),
                ('threshold', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('is_read', models.BooleanField(default=False)),
                ('read_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('allocation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to='funding.fundingallocation')),
                ('recipient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='funding_notifications', to='people.personprofile')),
            ],
            options={
                'db_table': 'funding_notifications',
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['recipient', 'is_read'], name='idx_notification_recipient')],
            },
        ),
    ]
