# Generated migration

from django.db import migrations, models
import django.utils.timezone
import sync.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Snapshot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(default=sync.models._snapshot_code, help_text='Short identifier shown to operators', max_length=12, unique=True)),
                ('taken_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('reason', models.CharField(default='Manual', max_length=200)),
                ('record_count', models.PositiveIntegerField(default=0)),
                ('payload', models.JSONField(default=list, help_text='Serialized records as of taken_at')),
            ],
            options={
                'db_table': 'snapshot',
                'ordering': ['-taken_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='SyncLogEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('timestamp', models.DateTimeField(default=django.utils.timezone.now)),
                ('outcome', models.CharField(choices=[('SUCCESS', 'Success'), ('ERROR', 'Error')], max_length=10)),
                ('message', models.TextField()),
                ('duration_ms', models.PositiveIntegerField(blank=True, null=True)),
            ],
            options={
                'db_table': 'sync_log_entry',
                'ordering': ['-timestamp', '-id'],
            },
        ),
        migrations.CreateModel(
            name='SyncSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sheet_ref', models.CharField(blank=True, help_text='Spreadsheet ID or published sheet URL', max_length=500)),
                ('auto_sync', models.BooleanField(default=True)),
                ('sync_time', models.CharField(default='13:00', help_text='Daily pull time, HH:MM (24h)', max_length=5)),
                ('last_sync', models.DateTimeField(blank=True, null=True)),
                ('last_scheduled_sync_date', models.DateField(blank=True, null=True)),
            ],
            options={
                'db_table': 'sync_settings',
                'verbose_name_plural': 'sync settings',
            },
        ),
    ]
