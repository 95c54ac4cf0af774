# Generated migration

from django.db import migrations, models
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Record',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('day', models.DateField(db_index=True, help_text='Calendar day the row was ingested for (dedup partition)')),
                ('payload', models.JSONField(help_text='Raw row dict')),
                ('payload_hash', models.CharField(db_index=True, help_text='SHA256 of canonical JSON payload', max_length=64)),
                ('source', models.CharField(choices=[('sheet_sync', 'Sheet sync'), ('upload', 'Workbook upload'), ('manual', 'Manual entry')], default='sheet_sync', max_length=20)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                'db_table': 'record',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='record',
            index=models.Index(fields=['day', '-created_at'], name='record_day_created_idx'),
        ),
        migrations.AddConstraint(
            model_name='record',
            constraint=models.UniqueConstraint(condition=models.Q(('source', 'manual'), _negated=True), fields=('day', 'payload_hash'), name='unique_record_per_day'),
        ),
    ]
