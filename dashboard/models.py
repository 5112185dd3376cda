import uuid

from django.contrib.auth.models import User
from django.core.validators import MinValueValidator
from django.db import models

# ----------------------------------------------------------------------
# 1. CONSTANTES E CHOICES
# ----------------------------------------------------------------------

ROLE_ADMIN = 'Admin'
ROLE_VERIFIER = 'Verifier'
ROLE_CONTRIBUTOR = 'Contributor'
ROLE_BUYER = 'Buyer'
ROLES = [ROLE_ADMIN, ROLE_VERIFIER, ROLE_CONTRIBUTOR, ROLE_BUYER]

ECOSYSTEM_TYPE_CHOICES = [
    ('Mangrove', 'Mangrove'),
    ('Seagrass', 'Seagrass'),
    ('Salt Marsh', 'Salt Marsh'),
    ('Coastal', 'Coastal'),
    ('Other', 'Other'),
]

STATUS_PENDING = 'pending'
STATUS_VERIFIED = 'verified'
STATUS_REJECTED = 'rejected'
STATUS_CHOICES = [
    (STATUS_PENDING, 'Pending'),
    (STATUS_VERIFIED, 'Verified'),
    (STATUS_REJECTED, 'Rejected'),
]

# ----------------------------------------------------------------------
# 2. PERFIS
# ----------------------------------------------------------------------


class UserProfile(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='profile')
    name = models.CharField(max_length=150, blank=True, verbose_name="Full Name")
    location = models.CharField(max_length=255, blank=True, null=True, verbose_name="Location")
    credits_purchased = models.FloatField(default=0, verbose_name="Credits Purchased (t CO2e)")

    class Meta:
        db_table = 'user_profile'

    def __str__(self):
        return f"Profile of {self.user.username}"


def user_role(user):
    """First role group of ``user`` (superusers count as Admin)."""
    if user.is_superuser:
        return ROLE_ADMIN
    names = set(user.groups.values_list('name', flat=True))
    return next((role for role in ROLES if role in names), None)


def display_name(user):
    profile = getattr(user, 'profile', None)
    if profile is not None and profile.name:
        return profile.name
    return user.get_full_name() or user.username

# ----------------------------------------------------------------------
# 3. PROJETOS DE RESTAURO
# ----------------------------------------------------------------------


class Project(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(User, on_delete=models.CASCADE, related_name='projects', verbose_name="Contributor")

    name = models.CharField(max_length=200, verbose_name="Project Name")
    description = models.TextField(verbose_name="Description")
    location = models.CharField(max_length=255, verbose_name="Location")
    area = models.FloatField(validators=[MinValueValidator(0)], verbose_name="Area (ha)")
    ecosystem_type = models.CharField(max_length=20, choices=ECOSYSTEM_TYPE_CHOICES, verbose_name="Ecosystem Type")
    plantation_type = models.CharField(max_length=100, blank=True, null=True, verbose_name="Plantation Type")

    # Valores calculados (dashboard.carbon)
    annual_co2 = models.FloatField(verbose_name="Annual CO2 (t/year)")
    lifetime_co2 = models.FloatField(verbose_name="Lifetime CO2 (t, 20 years)")
    co2_captured = models.FloatField(verbose_name="CO2 Captured (t)")
    credits_earned = models.FloatField(default=0, verbose_name="Credits Available")

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    proof_file = models.FileField(upload_to='proofs/', blank=True, null=True, verbose_name="Proof Document")
    verifier = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_reviews',
        limit_choices_to={'groups__name': ROLE_VERIFIER},
    )
    rejection_reason = models.TextField(blank=True, null=True)
    submitted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'projects'
        ordering = ['-submitted_at']

    def __str__(self):
        return f"{self.name} ({self.get_status_display()})"

    @property
    def proof_reference(self):
        return self.proof_file.name if self.proof_file else ''

    def as_dict(self):
        return {
            'id': str(self.id),
            'name': self.name,
            'description': self.description,
            'location': self.location,
            'area': self.area,
            'ecosystem_type': self.ecosystem_type,
            'plantation_type': self.plantation_type,
            'annual_co2': self.annual_co2,
            'lifetime_co2': self.lifetime_co2,
            'co2_captured': self.co2_captured,
            'credits_earned': self.credits_earned,
            'status': self.status,
            'user_id': str(self.owner_id),
            'verifier_id': str(self.verifier_id) if self.verifier_id else None,
            'rejection_reason': self.rejection_reason,
            'proof_file_url': self.proof_file.url if self.proof_file else None,
            'submitted_at': self.submitted_at.isoformat() if self.submitted_at else None,
        }

# ----------------------------------------------------------------------
# 4. MARKETPLACE
# ----------------------------------------------------------------------


class CreditPurchase(models.Model):
    buyer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='credit_purchases')
    contributor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='credit_sales')
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='purchases')
    credits = models.FloatField(validators=[MinValueValidator(0)])
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'credit_transactions'
        ordering = ['-timestamp']

    def __str__(self):
        return f"{self.buyer.username} bought {self.credits} from {self.project.name}"

    def as_dict(self):
        return {
            'id': self.pk,
            'buyer_id': str(self.buyer_id),
            'contributor_id': str(self.contributor_id),
            'project_id': str(self.project_id),
            'credits': self.credits,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }
