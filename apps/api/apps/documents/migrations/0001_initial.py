# Generated migration for documents app: registration documents

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='RegistrationDocument',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('document_type', models.CharField(choices=[('lab_reports', 'Lab Reports'), ('aadhaar', 'Aadhaar')], max_length=20)),
                ('bucket', models.CharField(editable=False, help_text='MinIO bucket the object was written to', max_length=64)),
                ('object_key', models.CharField(help_text='MinIO object key (path) within the bucket', max_length=512)),
                ('original_filename', models.CharField(max_length=255)),
                ('content_type', models.CharField(help_text='MIME type (application/pdf or image/jpeg)', max_length=128)),
                ('size_bytes', models.BigIntegerField(help_text='File size in bytes')),
                ('is_deleted', models.BooleanField(default=False, help_text='Soft delete flag')),
                ('deleted_at', models.DateTimeField(blank=True, help_text='When the document was soft-deleted', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(help_text='User who uploaded this document', on_delete=django.db.models.deletion.CASCADE, related_name='registration_documents', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Registration Document',
                'verbose_name_plural': 'Registration Documents',
                'db_table': 'registration_documents',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='registrationdocument',
            index=models.Index(fields=['user', 'document_type'], name='idx_regdoc_user_type'),
        ),
        migrations.AddIndex(
            model_name='registrationdocument',
            index=models.Index(fields=['is_deleted'], name='idx_regdoc_deleted'),
        ),
    ]
