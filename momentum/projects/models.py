from django.db import models
from decimal import Decimal
from momentum.core.constants import (
    CURRENCY_CHOICES, DEFAULT_CURRENCY, IMPORTANCE_CHOICES, PROJECT_HEALTH_CHOICES,
    PROJECT_STATUS_CHOICES, PROJECT_VISIBILITY_CHOICES, TASK_TYPE_CHOICES,
    WORK_STATUS_CHOICES, WORKPACKAGE_STATUS_CHOICES,
)
from momentum.core.models import User
from momentum.people.models import Lab, PersonProfile


class MasterProject(models.Model):
    """Top-level research project (usually one grant)"""
    TYPE_CHOICES = [
        ('funded', 'Funded'),
        ('unfunded', 'Unfunded'),
    ]
    KIND_CHOICES = [
        ('master', 'Master'),
        ('regular', 'Regular'),
    ]

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, max_length=5000)
    lab = models.ForeignKey(Lab, on_delete=models.CASCADE, null=True, blank=True, related_name='projects')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='unfunded')
    kind = models.CharField(max_length=20, choices=KIND_CHOICES, default='master')
    grant_name = models.CharField(max_length=255, blank=True)
    grant_number = models.CharField(max_length=100, blank=True)
    total_budget = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default=DEFAULT_CURRENCY)
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(max_length=20, choices=PROJECT_STATUS_CHOICES, default='planning')
    importance = models.CharField(max_length=20, choices=IMPORTANCE_CHOICES, default='medium')
    progress = models.PositiveSmallIntegerField(default=0)
    visibility = models.CharField(max_length=20, choices=PROJECT_VISIBILITY_CHOICES, default='lab')
    principal_investigators = models.ManyToManyField(PersonProfile, blank=True, related_name='led_projects')
    team_members = models.ManyToManyField(PersonProfile, blank=True, related_name='member_projects')
    tags = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, max_length=10000)
    # Recomputed on save by the health service
    health = models.CharField(max_length=20, choices=PROJECT_HEALTH_CHOICES, default='good')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_projects')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'master_projects'
        ordering = ['-start_date', 'name']
        indexes = [
            models.Index(fields=['lab', 'status'], name='idx_project_lab_status'),
        ]


class Workpackage(models.Model):
    """A block of work inside a project"""
    project = models.ForeignKey(MasterProject, on_delete=models.CASCADE, related_name='workpackages')
    name = models.CharField(max_length=200)
    start_date = models.DateField()
    end_date = models.DateField()
    progress = models.PositiveSmallIntegerField(default=0)
    importance = models.CharField(max_length=20, choices=IMPORTANCE_CHOICES, default='medium')
    status = models.CharField(max_length=20, choices=WORKPACKAGE_STATUS_CHOICES, default='planning')
    owner = models.ForeignKey(PersonProfile, on_delete=models.SET_NULL, null=True, blank=True, related_name='owned_workpackages')
    notes = models.TextField(blank=True, max_length=10000)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'workpackages'
        ordering = ['start_date', 'id']


class Deliverable(models.Model):
    """A concrete output of a workpackage"""
    workpackage = models.ForeignKey(Workpackage, on_delete=models.CASCADE, related_name='deliverables')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, max_length=5000)
    start_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)
    progress = models.PositiveSmallIntegerField(default=0)
    status = models.CharField(max_length=20, choices=WORK_STATUS_CHOICES, default='not-started')
    importance = models.CharField(max_length=20, choices=IMPORTANCE_CHOICES, default='medium')
    owner = models.ForeignKey(PersonProfile, on_delete=models.SET_NULL, null=True, blank=True, related_name='owned_deliverables')
    contributors = models.ManyToManyField(PersonProfile, blank=True, related_name='contributed_deliverables')
    blockers = models.JSONField(default=list, blank=True)
    metrics = models.JSONField(default=list, blank=True)
    review_history = models.JSONField(default=list, blank=True)
    document_links = models.JSONField(default=list, blank=True)
    tags = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, max_length=10000)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'deliverables'
        ordering = ['due_date', 'id']


class Task(models.Model):
    """A unit of work under a workpackage, optionally serving a deliverable"""
    workpackage = models.ForeignKey(Workpackage, on_delete=models.CASCADE, related_name='tasks')
    deliverable = models.ForeignKey(Deliverable, on_delete=models.SET_NULL, null=True, blank=True, related_name='tasks')
    name = models.CharField(max_length=200)
    start_date = models.DateField()
    end_date = models.DateField()
    progress = models.PositiveSmallIntegerField(default=0)
    importance = models.CharField(max_length=20, choices=IMPORTANCE_CHOICES, default='medium')
    status = models.CharField(max_length=20, choices=WORK_STATUS_CHOICES, default='not-started')
    type = models.CharField(max_length=20, choices=TASK_TYPE_CHOICES, blank=True)
    primary_owner = models.ForeignKey(PersonProfile, on_delete=models.SET_NULL, null=True, blank=True, related_name='owned_tasks')
    helpers = models.ManyToManyField(PersonProfile, blank=True, related_name='helping_tasks')
    dependencies = models.ManyToManyField('self', symmetrical=False, blank=True, related_name='dependents')
    tags = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, max_length=10000)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'tasks'
        ordering = ['start_date', 'id']
        indexes = [
            models.Index(fields=['workpackage', 'status'], name='idx_task_wp_status'),
        ]


class Subtask(models.Model):
    """
    A step of a task. Todos are stored inline as
    [{"id": str, "text": str, "completed": bool, "completed_at": iso|None}]
    """
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='subtasks')
    name = models.CharField(max_length=200)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    progress = models.PositiveSmallIntegerField(default=0)
    status = models.CharField(max_length=20, choices=WORK_STATUS_CHOICES, default='not-started')
    owner = models.ForeignKey(PersonProfile, on_delete=models.SET_NULL, null=True, blank=True, related_name='owned_subtasks')
    todos = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, max_length=10000)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'subtasks'
        ordering = ['id']


class ProjectFile(models.Model):
    """A document attached to a project, stored by URL"""
    project = models.ForeignKey(MasterProject, on_delete=models.CASCADE, related_name='files')
    name = models.CharField(max_length=255)
    url = models.URLField(max_length=2048)
    mime_type = models.CharField(max_length=100, blank=True)
    size = models.PositiveBigIntegerField(default=0)
    uploaded_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='project_files')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'project_files'
        ordering = ['-created_at']
