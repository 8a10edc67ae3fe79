# Bootstrap the fixed portal roles

from django.db import migrations

PORTAL_ROLES = ['admin', 'doctor', 'patient']


def create_portal_roles(apps, schema_editor):
    """
    Create admin, doctor and patient roles if missing.
    Idempotent - safe to run multiple times.
    """
    Role = apps.get_model('authz', 'Role')
    for name in PORTAL_ROLES:
        Role.objects.get_or_create(name=name)


def reverse_create_portal_roles(apps, schema_editor):
    """
    Reverse migration - delete roles that no user holds.
    """
    Role = apps.get_model('authz', 'Role')
    UserRole = apps.get_model('authz', 'UserRole')

    for role in Role.objects.filter(name__in=PORTAL_ROLES):
        if not UserRole.objects.filter(role=role).exists():
            role.delete()


class Migration(migrations.Migration):

    dependencies = [
        ('authz', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(
            create_portal_roles,
            reverse_create_portal_roles
        ),
    ]
