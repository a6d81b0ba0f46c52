# Generated manually
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

WORK_STATUS = [('not-started', 'Not Started'), ('in-progress', 'In Progress'), ('at-risk', 'At Risk'), ('blocked', 'Blocked'), ('done', 'Done')]
IMPORTANCE = [('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('people', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='MasterProject',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, max_length=5000)),
                ('type', models.CharField(choices=[('funded', 'Funded'), ('unfunded', 'Unfunded')], default='unfunded', max_length=20)),
                ('kind', models.CharField(choices=[('master', 'Master'), ('regular', 'Regular')], default='master', max_length=20)),
                ('grant_name', models.CharField(blank=True, max_length=255)),
                ('grant_number', models.CharField(blank=True, max_length=100)),
                ('total_budget', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('currency', models.CharField(choices=[('EUR', 'Euro'), ('GBP', 'British Pound'), ('USD', 'US Dollar'), ('CHF', 'Swiss Franc')], default='EUR', max_length=3)),
                ('start_date', models.DateField()),
                ('end_date', models.DateField()),
                ('status', models.CharField(choices=[('planning', 'Planning'), ('active', 'Active'), ('completed', 'Completed'), ('on-hold', 'On Hold'), ('cancelled', 'Cancelled')], default='planning', max_length=20)),
                ('importance', models.CharField(choices=IMPORTANCE, default='medium', max_length=20)),
                ('progress', models.PositiveSmallIntegerField(default=0)),
                ('visibility', models.CharField(choices=[('private', 'Private'), ('postdocs', 'Postdocs'), ('pi-researchers', 'PI & Researchers'), ('lab', 'Lab'), ('custom', 'Custom'), ('organisation', 'Organisation'), ('institute', 'Institute')], default='lab', max_length=20)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('notes', models.TextField(blank=True, max_length=10000)),
                ('health', models.CharField(choices=[('good', 'Good'), ('warning', 'Warning'), ('at-risk', 'At Risk')], default='good', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_projects', to=settings.AUTH_USER_MODEL)),
                ('lab', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='projects', to='people.lab')),
                ('principal_investigators', models.ManyToManyField(blank=True, related_name='led_projects', to='people.personprofile')),
                ('team_members', models.ManyToManyField(blank=True, related_name='member_projects', to='people.personprofile')),
            ],
            options={
                'db_table': 'master_projects',
                'ordering': ['-start_date', 'name'],
                'indexes': [
                    models.Index(fields=['lab', 'status'], name='idx_project_lab_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Workpackage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('start_date', models.DateField()),
                ('end_date', models.DateField()),
                ('progress', models.PositiveSmallIntegerField(default=0)),
                ('importance', models.CharField(choices=IMPORTANCE, default='medium', max_length=20)),
                ('status', models.CharField(choices=[('planning', 'Planning'), ('active', 'Active'), ('atRisk', 'At Risk'), ('completed', 'Completed'), ('onHold', 'On Hold')], default='planning', max_length=20)),
                ('notes', models.TextField(blank=True, max_length=10000)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='owned_workpackages', to='people.personprofile')),
                ('project', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='workpackages', to='projects.masterproject')),
            ],
            options={
                'db_table': 'workpackages',
                'ordering': ['start_date', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Deliverable',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, max_length=5000)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('due_date', models.DateField(blank=True, null=True)),
                ('progress', models.PositiveSmallIntegerField(default=0)),
                ('status', models.CharField(choices=WORK_STATUS, default='not-started', max_length=20)),
                ('importance', models.CharField(choices=IMPORTANCE, default='medium', max_length=20)),
                ('blockers', models.JSONField(blank=True, default=list)),
                ('metrics', models.JSONField(blank=True, default=list)),
                ('review_history', models.JSONField(blank=True, default=list)),
                ('document_links', models.JSONField(blank=True, default=list)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('notes', models.TextField(blank=True, max_length=10000)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('contributors', models.ManyToManyField(blank=True, related_name='contributed_deliverables', to='people.personprofile')),
                ('owner', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='owned_deliverables', to='people.personprofile')),
                ('workpackage', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='deliverables', to='projects.workpackage')),
            ],
            options={
                'db_table': 'deliverables',
                'ordering': ['due_date', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Task',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('start_date', models.DateField()),
                ('end_date', models.DateField()),
                ('progress', models.PositiveSmallIntegerField(default=0)),
                ('importance', models.CharField(choices=IMPORTANCE, default='medium', max_length=20)),
                ('status', models.CharField(choices=WORK_STATUS, default='not-started', max_length=20)),
                ('type', models.CharField(blank=True, choices=[('experiment', 'Experiment'), ('writing', 'Writing'), ('meeting', 'Meeting'), ('analysis', 'Analysis')], max_length=20)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('notes', models.TextField(blank=True, max_length=10000)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deliverable', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tasks', to='projects.deliverable')),
                ('dependencies', models.ManyToManyField(blank=True, related_name='dependents', to='projects.task')),
                ('helpers', models.ManyToManyField(blank=True, related_name='helping_tasks', to='people.personprofile')),
                ('primary_owner', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='owned_tasks', to='people.personprofile')),
                ('workpackage', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tasks', to='projects.workpackage')),
            ],
            options={
                'db_table': 'tasks',
                'ordering': ['start_date', 'id'],
                'indexes': [
                    models.Index(fields=['workpackage', 'status'], name='idx_task_wp_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Subtask',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('progress', models.PositiveSmallIntegerField(default=0)),
                ('status', models.CharField(choices=WORK_STATUS, default='not-started', max_length=20)),
                ('todos', models.JSONField(blank=True, default=list)),
                ('notes', models.TextField(blank=True, max_length=10000)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='owned_subtasks', to='people.personprofile')),
                ('task', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='subtasks', to='projects.task')),
            ],
            options={
                'db_table': 'subtasks',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='ProjectFile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('url', models.URLField(max_length=2048)),
                ('mime_type', models.CharField(blank=True, max_length=100)),
                ('size', models.PositiveBigIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('project', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='files', to='projects.masterproject')),
                ('uploaded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='project_files', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'project_files',
                'ordering': ['-created_at'],
            },
        ),
    ]
