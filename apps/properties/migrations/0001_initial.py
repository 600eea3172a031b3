import django.core.validators
import django.db.models.deletion
from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Property',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('host_id', models.PositiveBigIntegerField(db_index=True)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('pending', 'Pending review'), ('active', 'Active'), ('inactive', 'Inactive')], default='pending', max_length=20)),
                ('price_per_night', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('price_per_two_nights', models.DecimalField(blank=True, decimal_places=2, help_text='Total price for a stay of exactly two nights.', max_digits=10, null=True)),
                ('currency', models.CharField(default='USD', max_length=3)),
                ('max_guests', models.PositiveSmallIntegerField(default=1)),
                ('min_stay', models.PositiveSmallIntegerField(default=1, help_text='Minimum number of nights.')),
                ('available_from', models.DateField(blank=True, null=True)),
                ('available_to', models.DateField(blank=True, null=True)),
                ('total_bookings', models.PositiveIntegerField(default=0)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Property',
                'verbose_name_plural': 'Properties',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='properties__status_1f2a6b_idx'),
                    models.Index(fields=['host_id', 'status'], name='properties__host_id_7c9e1d_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('max_guests__gte', 1)), name='property_max_guests_positive'),
                    models.CheckConstraint(
                        condition=models.Q(
                            ('available_from__isnull', True),
                            ('available_to__isnull', True),
                            ('available_to__gt', models.F('available_from')),
                            _connector='OR',
                        ),
                        name='property_valid_availability_window',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='BlockedRange',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('start_date', models.DateField()),
                ('end_date', models.DateField()),
                ('reason', models.CharField(blank=True, max_length=255)),
                ('tag', models.CharField(db_index=True, max_length=64)),
                ('kind', models.CharField(choices=[('manual', 'Manual block'), ('booking', 'Reservation')], default='manual', max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('property', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='blocked_ranges', to='properties.property')),
            ],
            options={
                'verbose_name': 'Blocked range',
                'verbose_name_plural': 'Blocked ranges',
                'ordering': ['start_date'],
                'indexes': [
                    models.Index(fields=['property', 'is_active', 'start_date', 'end_date'], name='properties__propert_3b8d0e_idx'),
                    models.Index(fields=['tag', 'is_active'], name='properties__tag_5e4f2a_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('end_date__gt', models.F('start_date'))), name='blocked_range_valid_date_range'),
                ],
            },
        ),
    ]
