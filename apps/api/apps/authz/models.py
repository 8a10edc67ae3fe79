"""
Authz models: auth_user, auth_role, auth_user_role, doctors
"""
import uuid
from django.db import models
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin


# ============================================================================
# User Management
# ============================================================================

class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Portal user (doctor, patient or admin), authenticated by email.

    Fields:
    - id: UUID PK
    - email: unique
    - password_hash: handled by AbstractBaseUser
    - is_active: bool
    - last_login: from AbstractBaseUser
    - created_at, updated_at
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, max_length=255)
    first_name = models.CharField(max_length=150, blank=True, help_text='First name of the user')
    last_name = models.CharField(max_length=150, blank=True, help_text='Last name of the user')
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)  # Required for admin access
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'auth_user'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        indexes = [
            models.Index(fields=['email'], name='idx_user_email'),
            models.Index(fields=['is_active'], name='idx_user_active'),
        ]

    def __str__(self):
        return self.email

    @property
    def role_names(self):
        """Set of role names assigned to this user."""
        return set(self.user_roles.values_list('role__name', flat=True))


class RoleChoices(models.TextChoices):
    """Fixed portal role names."""
    ADMIN = 'admin', 'Admin'
    DOCTOR = 'doctor', 'Doctor'
    PATIENT = 'patient', 'Patient'


class Role(models.Model):
    """
    System roles.

    - id: UUID PK
    - name: unique (admin|doctor|patient)
    - created_at
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(
        max_length=50,
        unique=True,
        choices=RoleChoices.choices
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'auth_role'
        verbose_name = 'Role'
        verbose_name_plural = 'Roles'

    def __str__(self):
        return self.get_name_display()


class UserRole(models.Model):
    """
    Many-to-many relationship between users and roles.

    - user_id: FK -> auth_user
    - role_id: FK -> auth_role
    - Unique (user_id, role_id)
    """
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='user_roles'
    )
    role = models.ForeignKey(
        Role,
        on_delete=models.CASCADE,
        related_name='user_roles'
    )

    class Meta:
        db_table = 'auth_user_role'
        verbose_name = 'User Role'
        verbose_name_plural = 'User Roles'
        unique_together = [('user', 'role')]
        indexes = [
            models.Index(fields=['user'], name='idx_user_role_user'),
            models.Index(fields=['role'], name='idx_user_role_role'),
        ]

    def __str__(self):
        return f"{self.user.email} - {self.role.name}"


class Doctor(models.Model):
    """
    Doctor profile linked 1:1 to a user.

    BUSINESS RULES:
    - Only active doctors can author consultations and prescriptions
    - registration_number is the medical council registration, unique when present
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='doctor'
    )
    display_name = models.CharField(max_length=255)
    specialty = models.CharField(max_length=100, default='General Medicine')
    registration_number = models.CharField(
        max_length=64,
        unique=True,
        blank=True,
        null=True,
        help_text='Medical council registration number'
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'doctors'
        verbose_name = 'Doctor'
        verbose_name_plural = 'Doctors'
        indexes = [
            models.Index(fields=['is_active'], name='idx_doctor_active'),
            models.Index(fields=['display_name'], name='idx_doctor_name'),
        ]

    def __str__(self):
        return self.display_name
