# Generated manually
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Lab',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('institute', models.CharField(blank=True, max_length=200)),
                ('organisation', models.CharField(blank=True, max_length=200)),
                ('default_allocation_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('default_currency', models.CharField(choices=[('EUR', 'Euro'), ('GBP', 'British Pound'), ('USD', 'US Dollar'), ('CHF', 'Swiss Franc')], default='EUR', max_length=3)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'labs',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='PersonProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('first_name', models.CharField(max_length=100)),
                ('last_name', models.CharField(max_length=100)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('position', models.CharField(choices=[('pi', 'Principal Investigator'), ('group_leader', 'Group Leader'), ('senior_researcher', 'Senior Researcher'), ('postdoc', 'Postdoctoral Researcher'), ('research_fellow', 'Research Fellow'), ('phd_student', 'PhD Student'), ('masters_student', 'Masters Student'), ('undergraduate', 'Undergraduate Student'), ('research_assistant', 'Research Assistant'), ('technician', 'Technician'), ('lab_manager', 'Lab Manager'), ('visiting', 'Visiting Researcher'), ('other', 'Other')], default='other', max_length=50)),
                ('organisation', models.CharField(blank=True, max_length=200)),
                ('institute', models.CharField(blank=True, max_length=200)),
                ('phone', models.CharField(blank=True, max_length=50)),
                ('office_location', models.CharField(blank=True, max_length=200)),
                ('research_interests', models.JSONField(blank=True, default=list)),
                ('qualifications', models.JSONField(blank=True, default=list)),
                ('user_role', models.CharField(choices=[('pi', 'PI'), ('finance_admin', 'Finance Admin'), ('lab_manager', 'Lab Manager'), ('researcher', 'Researcher'), ('student', 'Student'), ('external', 'External')], default='researcher', max_length=20)),
                ('notes', models.TextField(blank=True, max_length=10000)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('lab', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='members', to='people.lab')),
                ('reports_to', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='direct_reports', to='people.personprofile')),
                ('user', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'person_profiles',
                'ordering': ['last_name', 'first_name'],
                'indexes': [
                    models.Index(fields=['lab', 'position'], name='idx_profile_lab_position'),
                    models.Index(fields=['email'], name='idx_profile_email'),
                ],
            },
        ),
    ]
