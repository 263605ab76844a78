from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='SyncLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('direction', models.CharField(choices=[('pull', 'Pull'), ('push', 'Push')], max_length=10)),
                ('table', models.CharField(max_length=100)),
                ('key', models.CharField(blank=True, max_length=100)),
                ('status', models.CharField(choices=[('ok', 'OK'), ('failed', 'Failed')], max_length=10)),
                ('rows_fetched', models.PositiveIntegerField(default=0)),
                ('rows_applied', models.PositiveIntegerField(default=0)),
                ('rows_preserved', models.PositiveIntegerField(default=0)),
                ('error_message', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['direction', 'status', 'created_at'], name='synclog_direction_status_idx')],
            },
        ),
    ]
