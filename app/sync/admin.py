from django.contrib import admin
from .models import Snapshot, SyncLogEntry, SyncSettings


@admin.register(Snapshot)
class SnapshotAdmin(admin.ModelAdmin):
    list_display = ['code', 'taken_at', 'reason', 'record_count']
    search_fields = ['code', 'reason']
    readonly_fields = ['code', 'taken_at', 'record_count', 'payload']
    ordering = ['-taken_at']


@admin.register(SyncLogEntry)
class SyncLogEntryAdmin(admin.ModelAdmin):
    list_display = ['timestamp', 'outcome', 'message', 'duration_ms']
    list_filter = ['outcome']
    readonly_fields = ['timestamp', 'outcome', 'message', 'duration_ms']


@admin.register(SyncSettings)
class SyncSettingsAdmin(admin.ModelAdmin):
    list_display = ['sheet_ref', 'auto_sync', 'sync_time', 'last_sync']
    readonly_fields = ['last_sync', 'last_scheduled_sync_date']
