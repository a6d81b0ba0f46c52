# Generated manually
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('people', '0001_initial'),
        ('funding', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='lab',
            name='default_funding_account',
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='default_for_labs', to='funding.fundingaccount'),
        ),
    ]
