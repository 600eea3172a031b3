from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('recipient_id', models.PositiveBigIntegerField(db_index=True)),
                ('recipient_role', models.CharField(choices=[('customer', 'Customer'), ('owner', 'Owner')], max_length=20)),
                ('event', models.CharField(max_length=64)),
                ('event_id', models.UUIDField(blank=True, null=True)),
                ('reservation_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('title', models.CharField(max_length=255)),
                ('message', models.TextField()),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('is_read', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['-created_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('event_id', 'recipient_role'), name='notification_once_per_event_and_party'),
                ],
            },
        ),
    ]
