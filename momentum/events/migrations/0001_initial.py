# Generated manually
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('people', '0001_initial'),
        ('projects', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='CalendarEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, max_length=5000)),
                ('location', models.CharField(blank=True, max_length=255)),
                ('link_url', models.URLField(blank=True, max_length=2048)),
                ('start', models.DateTimeField()),
                ('end', models.DateTimeField()),
                ('all_day', models.BooleanField(default=False)),
                ('recurrence', models.JSONField(blank=True, null=True)),
                ('attendees', models.JSONField(blank=True, default=list)),
                ('reminders', models.JSONField(blank=True, default=list)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('visibility', models.CharField(choices=[('private', 'Private'), ('lab', 'Lab'), ('organisation', 'Organisation')], default='lab', max_length=20)),
                ('type', models.CharField(choices=[('meeting', 'Meeting'), ('deadline', 'Deadline'), ('milestone', 'Milestone'), ('training', 'Training'), ('other', 'Other')], default='meeting', max_length=20)),
                ('notes', models.TextField(blank=True, max_length=10000)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_events', to=settings.AUTH_USER_MODEL)),
                ('lab', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='events', to='people.lab')),
                ('owner', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='owned_events', to='people.personprofile')),
                ('related_deliverable', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='events', to='projects.deliverable')),
                ('related_project', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='events', to='projects.masterproject')),
                ('related_task', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='events', to='projects.task')),
                ('related_workpackage', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='events', to='projects.workpackage')),
            ],
            options={
                'db_table': 'calendar_events',
                'ordering': ['start'],
                'indexes': [
                    models.Index(fields=['start'], name='idx_event_start'),
                    models.Index(fields=['lab', 'start'], name='idx_event_lab_start'),
                ],
            },
        ),
    ]
