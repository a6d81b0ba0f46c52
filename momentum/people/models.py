from django.db import models
from decimal import Decimal
from momentum.core.constants import CURRENCY_CHOICES, DEFAULT_CURRENCY
from momentum.core.models import User


class Lab(models.Model):
    """A research group; owns people, projects, budgets and stock"""
    name = models.CharField(max_length=200)
    institute = models.CharField(max_length=200, blank=True)
    organisation = models.CharField(max_length=200, blank=True)
    # New members get a PERSON allocation on this account
    default_funding_account = models.ForeignKey(
        'funding.FundingAccount', on_delete=models.SET_NULL, null=True, blank=True, related_name='default_for_labs'
    )
    default_allocation_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    default_currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default=DEFAULT_CURRENCY)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'labs'
        ordering = ['name']


class PersonProfile(models.Model):
    """A lab member's profile, optionally linked to a login"""
    POSITION_CHOICES = [
        ('pi', 'Principal Investigator'),
        ('group_leader', 'Group Leader'),
        ('senior_researcher', 'Senior Researcher'),
        ('postdoc', 'Postdoctoral Researcher'),
        ('research_fellow', 'Research Fellow'),
        ('phd_student', 'PhD Student'),
        ('masters_student', 'Masters Student'),
        ('undergraduate', 'Undergraduate Student'),
        ('research_assistant', 'Research Assistant'),
        ('technician', 'Technician'),
        ('lab_manager', 'Lab Manager'),
        ('visiting', 'Visiting Researcher'),
        ('other', 'Other'),
    ]

    ROLE_CHOICES = [
        ('pi', 'PI'),
        ('finance_admin', 'Finance Admin'),
        ('lab_manager', 'Lab Manager'),
        ('researcher', 'Researcher'),
        ('student', 'Student'),
        ('external', 'External'),
    ]

    user = models.OneToOneField(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='profile')
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(max_length=254, blank=True)
    position = models.CharField(max_length=50, choices=POSITION_CHOICES, default='other')
    organisation = models.CharField(max_length=200, blank=True)
    institute = models.CharField(max_length=200, blank=True)
    lab = models.ForeignKey(Lab, on_delete=models.SET_NULL, null=True, blank=True, related_name='members')
    reports_to = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='direct_reports')
    phone = models.CharField(max_length=50, blank=True)
    office_location = models.CharField(max_length=200, blank=True)
    research_interests = models.JSONField(default=list, blank=True)
    qualifications = models.JSONField(default=list, blank=True)
    user_role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='researcher')
    notes = models.TextField(blank=True, max_length=10000)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def lab_name(self):
        return self.lab.name if self.lab_id else ''

    def __str__(self):
        return self.full_name

    class Meta:
        db_table = 'person_profiles'
        ordering = ['last_name', 'first_name']
        indexes = [
            models.Index(fields=['lab', 'position'], name='idx_profile_lab_position'),
            models.Index(fields=['email'], name='idx_profile_email'),
        ]
