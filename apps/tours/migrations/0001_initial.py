import django.core.validators
import django.db.models.deletion
from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Tour',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('guide_id', models.PositiveBigIntegerField(db_index=True)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('active', 'Active'), ('inactive', 'Inactive')], default='active', max_length=20)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('currency', models.CharField(default='USD', max_length=3)),
                ('min_group_size', models.PositiveSmallIntegerField(default=1)),
                ('max_group_size', models.PositiveSmallIntegerField(default=10)),
                ('is_active', models.BooleanField(default=True)),
                ('total_bookings', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Tour',
                'verbose_name_plural': 'Tours',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['guide_id', 'is_active'], name='tours_tour_guide_i_4a1c7e_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('min_group_size__gte', 1)), name='tour_min_group_positive'),
                    models.CheckConstraint(condition=models.Q(('max_group_size__gte', models.F('min_group_size'))), name='tour_group_size_min_max_valid'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TourSchedule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('start_date', models.DateTimeField()),
                ('end_date', models.DateTimeField()),
                ('available_slots', models.PositiveIntegerField()),
                ('booked_slots', models.PositiveIntegerField(default=0)),
                ('is_available', models.BooleanField(default=True)),
                ('price', models.DecimalField(blank=True, decimal_places=2, help_text='Overrides the tour price for this occurrence.', max_digits=10, null=True)),
                ('special_notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tour', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='schedules', to='tours.tour')),
            ],
            options={
                'verbose_name': 'Tour schedule',
                'verbose_name_plural': 'Tour schedules',
                'ordering': ['start_date'],
                'indexes': [
                    models.Index(fields=['tour', 'start_date'], name='tours_tours_tour_id_9d3b2f_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('end_date__gt', models.F('start_date'))), name='tour_schedule_valid_date_range'),
                    models.CheckConstraint(condition=models.Q(('booked_slots__gte', 0)), name='tour_schedule_booked_slots_non_negative'),
                    models.CheckConstraint(condition=models.Q(('booked_slots__lte', models.F('available_slots'))), name='tour_schedule_booked_within_capacity'),
                ],
            },
        ),
    ]
