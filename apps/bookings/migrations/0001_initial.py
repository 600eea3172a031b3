import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models

PAYMENT_STATUS_CHOICES = [('pending', 'Pending'), ('paid', 'Paid'), ('failed', 'Failed'), ('refunded', 'Refunded')]
ACTOR_ROLE_CHOICES = [('guest', 'Guest'), ('host', 'Host'), ('guide', 'Guide'), ('system', 'System')]


def reservation_fields():
    return [
        ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ('currency', models.CharField(default='USD', max_length=3)),
        ('payment_status', models.CharField(choices=PAYMENT_STATUS_CHOICES, default='pending', max_length=20)),
        ('payment_reference', models.CharField(blank=True, max_length=100)),
        ('special_requests', models.TextField(blank=True)),
        ('expires_at', models.DateTimeField(blank=True, help_text='Pending reservations still unconfirmed at this time are cancelled by the sweep.', null=True)),
        ('confirmed_at', models.DateTimeField(blank=True, null=True)),
        ('completed_at', models.DateTimeField(blank=True, null=True)),
        ('cancelled_at', models.DateTimeField(blank=True, null=True)),
        ('cancelled_by', models.CharField(blank=True, choices=ACTOR_ROLE_CHOICES, max_length=20)),
        ('cancellation_reason', models.CharField(blank=True, max_length=500)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('properties', '0001_initial'),
        ('tours', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Booking',
            fields=reservation_fields() + [
                ('guest_id', models.PositiveBigIntegerField(db_index=True)),
                ('check_in', models.DateField()),
                ('check_out', models.DateField()),
                ('guest_count', models.PositiveSmallIntegerField(default=1)),
                ('total_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('confirmed', 'Confirmed'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='pending', max_length=20)),
                ('message', models.TextField(blank=True)),
                ('property', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bookings', to='properties.property')),
            ],
            options={
                'verbose_name': 'Booking',
                'verbose_name_plural': 'Bookings',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['property', 'status', 'check_in', 'check_out'], name='bookings_bo_propert_8e2c41_idx'),
                    models.Index(fields=['status', 'expires_at'], name='bookings_bo_status_2b7f90_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('check_out__gt', models.F('check_in'))), name='booking_valid_dates'),
                    models.CheckConstraint(condition=models.Q(('guest_count__gte', 1)), name='booking_guest_count_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TourBooking',
            fields=reservation_fields() + [
                ('user_id', models.PositiveBigIntegerField(db_index=True)),
                ('guide_id', models.PositiveBigIntegerField(db_index=True)),
                ('number_of_participants', models.PositiveSmallIntegerField()),
                ('participants', models.JSONField(default=list)),
                ('total_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('confirmed', 'Confirmed'), ('completed', 'Completed'), ('cancelled', 'Cancelled'), ('no_show', 'No show')], default='pending', max_length=20)),
                ('check_in_status', models.CharField(choices=[('not_checked_in', 'Not checked in'), ('checked_in', 'Checked in'), ('checked_out', 'Checked out')], default='not_checked_in', max_length=20)),
                ('check_in_time', models.DateTimeField(blank=True, null=True)),
                ('check_out_time', models.DateTimeField(blank=True, null=True)),
                ('schedule', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bookings', to='tours.tourschedule')),
                ('tour', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bookings', to='tours.tour')),
            ],
            options={
                'verbose_name': 'Tour booking',
                'verbose_name_plural': 'Tour bookings',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['schedule', 'status'], name='bookings_to_schedul_6a3d15_idx'),
                    models.Index(fields=['status', 'expires_at'], name='bookings_to_status_c41e07_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('number_of_participants__gte', 1)), name='tour_booking_participants_positive'),
                ],
            },
        ),
    ]
