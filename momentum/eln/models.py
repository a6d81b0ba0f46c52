from django.db import models
from momentum.core.models import User
from momentum.inventory.models import Equipment
from momentum.people.models import Lab
from momentum.projects.models import MasterProject, Task, Workpackage


class ELNExperiment(models.Model):
    """
    Electronic lab notebook entry.

    consumed_inventory lines look like
    {"inventory_id": int, "product_name": str, "quantity_used": number,
     "deducted": bool, "deducted_at": iso|None}
    """
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('in-progress', 'In Progress'),
        ('completed', 'Completed'),
        ('archived', 'Archived'),
    ]

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, max_length=5000)
    experiment_number = models.CharField(max_length=20, unique=True, blank=True, null=True)
    master_project = models.ForeignKey(MasterProject, on_delete=models.SET_NULL, null=True, blank=True, related_name='experiments')
    workpackage = models.ForeignKey(Workpackage, on_delete=models.SET_NULL, null=True, blank=True, related_name='experiments')
    task = models.ForeignKey(Task, on_delete=models.SET_NULL, null=True, blank=True, related_name='experiments')
    lab = models.ForeignKey(Lab, on_delete=models.CASCADE, null=True, blank=True, related_name='experiments')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    items = models.JSONField(default=list, blank=True)
    pages = models.JSONField(default=list, blank=True)
    reports = models.JSONField(default=list, blank=True)
    tags = models.JSONField(default=list, blank=True)
    consumed_inventory = models.JSONField(default=list, blank=True)
    equipment_used = models.ManyToManyField(Equipment, blank=True, related_name='experiments')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='experiments')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.experiment_number or f"Experiment-{self.id}"

    class Meta:
        db_table = 'eln_experiments'
        ordering = ['-created_at', '-id']
