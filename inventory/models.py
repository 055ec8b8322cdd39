from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class Account(models.Model):
    """
    Profil métier rattaché à un utilisateur Django.
    A pharmacy account points at the institute that created it through `parent`.
    """
    ROLE_ADMIN = 'admin'
    ROLE_INSTITUTE = 'institute'
    ROLE_PHARMACY = 'pharmacy'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Admin'),
        (ROLE_INSTITUTE, 'Institute'),
        (ROLE_PHARMACY, 'Pharmacy'),
    ]

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='account')
    name = models.CharField(max_length=255, db_index=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, db_index=True)
    parent = models.ForeignKey(
        'self', on_delete=models.SET_NULL, null=True, blank=True, related_name='children'
    )
    license_number = models.CharField(max_length=100, blank=True, null=True)
    address = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name = 'Account'
        verbose_name_plural = 'Accounts'

    def __str__(self):
        return f'{self.name} ({self.role})'

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_institute(self):
        return self.role == self.ROLE_INSTITUTE

    @property
    def is_pharmacy(self):
        return self.role == self.ROLE_PHARMACY

    @property
    def institute(self):
        """The institute a pharmacy indents from, or None when unlinked."""
        if self.parent is not None and self.parent.is_institute:
            return self.parent
        return None


class DrugType(models.Model):
    """Type de médicament proposé dans les formulaires de saisie (Tablet, Syrup...)."""
    type_name = models.CharField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['type_name']
        verbose_name = 'Drug type'
        verbose_name_plural = 'Drug types'

    def __str__(self):
        return self.type_name


class DrugName(models.Model):
    drug_type = models.ForeignKey(DrugType, on_delete=models.PROTECT, related_name='names')
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']
        verbose_name = 'Drug name'
        verbose_name_plural = 'Drug names'
        constraints = [
            models.UniqueConstraint(fields=['drug_type', 'name'], name='unique_name_per_type'),
        ]

    def __str__(self):
        return f'{self.name} ({self.drug_type.type_name})'


class DrugCategory(models.TextChoices):
    IPD = 'IPD', 'IPD'
    OPD = 'OPD', 'OPD'
    OUTREACH = 'OUTREACH', 'Outreach'


class Drug(models.Model):
    drug_type = models.CharField(max_length=100)
    name = models.CharField(max_length=255, db_index=True)
    batch_no = models.CharField(max_length=100)
    description = models.TextField(blank=True, default='')
    stock = models.PositiveIntegerField(default=0, db_index=True)  # Index pour filtrer les stocks > 0
    mfg_date = models.DateField()
    exp_date = models.DateField(db_index=True)
    price = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))]
    )
    category = models.CharField(max_length=20, choices=DrugCategory.choices, blank=True, null=True)
    created_by = models.ForeignKey(Account, on_delete=models.CASCADE, related_name='drugs')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        # Oldest stock first
        ordering = ['mfg_date', 'name']
        verbose_name = 'Drug'
        verbose_name_plural = 'Drugs'
        constraints = [
            models.UniqueConstraint(fields=['created_by', 'batch_no'], name='unique_batch_per_owner'),
        ]
        indexes = [
            models.Index(fields=['created_by', 'stock'], name='drug_owner_stock_idx'),
        ]

    def __str__(self):
        return f'{self.name} [{self.batch_no}]'

    def clean(self):
        super().clean()
        if self.mfg_date and self.exp_date and self.mfg_date >= self.exp_date:
            raise ValidationError({'exp_date': 'Manufacturing date must be before expiration date'})

    @property
    def in_stock(self):
        return self.stock > 0
