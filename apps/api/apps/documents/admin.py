from django.contrib import admin
from .models import RegistrationDocument


@admin.register(RegistrationDocument)
class RegistrationDocumentAdmin(admin.ModelAdmin):
    list_display = [
        'original_filename',
        'document_type',
        'user',
        'content_type',
        'size_bytes',
        'is_deleted',
        'created_at'
    ]
    list_filter = ['document_type', 'is_deleted', 'content_type', 'created_at']
    search_fields = ['original_filename', 'object_key', 'user__email']
    readonly_fields = [
        'id',
        'bucket',
        'created_at',
        'updated_at',
        'deleted_at'
    ]
    autocomplete_fields = ['user']

    fieldsets = (
        ('Document Info', {
            'fields': ('id', 'user', 'document_type', 'original_filename')
        }),
        ('Storage', {
            'fields': ('bucket', 'object_key', 'content_type', 'size_bytes')
        }),
        ('Soft Delete', {
            'fields': ('is_deleted', 'deleted_at')
        }),
        ('Audit', {
            'fields': ('created_at', 'updated_at')
        }),
    )
