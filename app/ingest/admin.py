from django.contrib import admin
from .models import Record


@admin.register(Record)
class RecordAdmin(admin.ModelAdmin):
    list_display = ['id', 'day', 'source', 'created_at']
    list_filter = ['source', 'day']
    search_fields = ['payload']
    readonly_fields = ['id', 'payload_hash', 'created_at']
    date_hierarchy = 'created_at'
    ordering = ['-created_at']
