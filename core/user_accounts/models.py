"""
User Account Models
Authenticated users and the procurement role they act under.
"""
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager
from django.db import models


class Role(models.TextChoices):
    """Procurement roles. The workflow engine only trusts this value."""
    SITE_ENGINEER = 'site_engineer', 'Site Engineer'
    MANAGER = 'manager', 'Manager'
    PURCHASE_OFFICER = 'purchase_officer', 'Purchase Officer'


class CustomUserManager(BaseUserManager):
    """Creates users with a procurement role."""

    def create_user(self, email, name, phone_number, password=None, role=Role.SITE_ENGINEER, **extra_fields):
        """
        Create and save a user.

        Args:
            email: User's email address (used for authentication)
            name: User's full name
            phone_number: User's phone number
            password: User's password (will be hashed)
            role: One of Role.values
            **extra_fields: Additional fields to set on the user

        Returns:
            CustomUser: The created user instance
        """
        if not email:
            raise ValueError('Email is required')
        if not name:
            raise ValueError('Name is required')
        if not phone_number:
            raise ValueError('Phone number is required')
        if role not in Role.values:
            raise ValueError(f"Unknown role '{role}'")

        user = self.model(
            email=self.normalize_email(email),
            name=name,
            phone_number=phone_number,
            role=role,
            **extra_fields
        )
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, name, phone_number, password=None, **extra_fields):
        """Required by Django for the createsuperuser management command."""
        extra_fields.setdefault('is_staff', True)
        return self.create_user(
            email=email,
            name=name,
            phone_number=phone_number,
            password=password,
            role=Role.MANAGER,
            **extra_fields
        )


class CustomUser(AbstractBaseUser):
    """Custom user model with email authentication and a procurement role"""
    email = models.EmailField(unique=True, db_index=True)
    name = models.CharField(max_length=255)
    phone_number = models.CharField(max_length=15)

    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.SITE_ENGINEER,
        db_index=True
    )
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    assigned_sites = models.ManyToManyField(
        'catalog.Site',
        blank=True,
        related_name='assigned_users',
        help_text="Sites this user may raise requests for"
    )

    objects = CustomUserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['name', 'phone_number']

    class Meta:
        db_table = 'custom_users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'

    def __str__(self):
        return f"{self.name} ({self.email})"

    def has_role(self, *roles):
        return self.role in roles

    def is_site_engineer(self):
        return self.role == Role.SITE_ENGINEER

    def is_manager(self):
        return self.role == Role.MANAGER

    def is_purchase_officer(self):
        return self.role == Role.PURCHASE_OFFICER

    def is_assigned_to(self, site):
        """Check whether the user may raise requests for ``site``."""
        return self.assigned_sites.filter(pk=site.pk).exists()
