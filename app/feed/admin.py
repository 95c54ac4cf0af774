from django.contrib import admin
from .models import ApiKey, AuditLog


@admin.register(ApiKey)
class ApiKeyAdmin(admin.ModelAdmin):
    list_display = ['owner_name', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['owner_name']
    readonly_fields = ['id', 'key_value', 'created_at']
    ordering = ['-created_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['timestamp', 'action', 'status', 'details']
    list_filter = ['action', 'status']
    search_fields = ['details']
    readonly_fields = ['id', 'timestamp']
    date_hierarchy = 'timestamp'
    ordering = ['-timestamp']
