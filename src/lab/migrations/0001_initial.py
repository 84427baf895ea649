import django.core.serializers.json
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Computer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('location', models.CharField(max_length=100)),
                ('specifications', models.TextField(blank=True, default='')),
                ('operating_system', models.CharField(choices=[('Windows', 'Windows'), ('Linux', 'Linux'), ('macOS', 'macOS'), ('Dual Boot', 'Dual Boot'), ('WSL', 'WSL'), ('VM on Linux', 'VM on Linux'), ('Other', 'Other')], default='Windows', max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('start_date', models.DateField()),
                ('end_date', models.DateField()),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('reason', models.TextField()),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('cancelled', 'Cancelled'), ('completed', 'Completed')], db_index=True, default='pending', max_length=10)),
                ('requires_gpu', models.BooleanField(default=False)),
                ('problem_statement', models.TextField(blank=True, default='')),
                ('dataset_type', models.CharField(choices=[('Image', 'Image'), ('Video', 'Video'), ('Text', 'Text'), ('Tabular', 'Tabular'), ('Audio', 'Audio'), ('Other', 'Other')], default='Other', max_length=10)),
                ('dataset_size_value', models.PositiveIntegerField(default=0)),
                ('dataset_size_unit', models.CharField(choices=[('MB', 'MB'), ('GB', 'GB'), ('TB', 'TB')], default='MB', max_length=2)),
                ('dataset_link', models.CharField(blank=True, default='', max_length=500)),
                ('bottleneck_explanation', models.TextField(blank=True, default='')),
                ('is_temporary_booking', models.BooleanField(default=False)),
                ('has_active_releases', models.BooleanField(default=False)),
                ('total_released_days', models.PositiveIntegerField(default=0)),
                ('releases_updated_at', models.DateTimeField(blank=True, null=True)),
                ('release_counter', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('computer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bookings', to='lab.computer')),
                ('original_booking', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='temporary_bookings', to='lab.booking')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bookings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['computer', 'status', 'start_date', 'end_date'], name='booking_overlap_idx'),
                    models.Index(fields=['computer', 'status', 'has_active_releases'], name='booking_release_lookup_idx'),
                    models.Index(fields=['user', 'status'], name='booking_user_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReleasedDate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('is_booked', models.BooleanField(default=False)),
                ('booking', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='released_dates', to='lab.booking')),
                ('temp_booking', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='lab.booking')),
            ],
            options={
                'ordering': ['date', 'id'],
                'indexes': [
                    models.Index(fields=['booking', 'is_booked', 'date'], name='released_date_open_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('booking', 'date'), name='released_date_unique_per_booking'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReleaseDetail',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('release_number', models.PositiveIntegerField()),
                ('released_dates', models.JSONField(default=list)),
                ('reason', models.TextField()),
                ('status', models.CharField(choices=[('active', 'Active'), ('partially_booked', 'Partially booked'), ('fully_booked', 'Fully booked'), ('cancelled', 'Cancelled')], db_index=True, default='active', max_length=20)),
                ('user_message', models.CharField(blank=True, default='', max_length=255)),
                ('release_type', models.CharField(choices=[('single_day', 'Single day'), ('multiple_days', 'Multiple days'), ('range', 'Range'), ('admin_created', 'Admin created')], default='single_day', max_length=20)),
                ('is_emergency', models.BooleanField(default=False)),
                ('created_by_admin', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('admin', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('booking', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='releases', to='lab.booking')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='releases', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['user', 'status', 'created_at'], name='release_user_status_idx'),
                    models.Index(fields=['booking', 'status'], name='release_booking_status_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('booking', 'release_number'), name='release_number_unique_per_booking'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReleaseDetailDate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('is_booked', models.BooleanField(default=False)),
                ('booked_at', models.DateTimeField(blank=True, null=True)),
                ('booked_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('release', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='booking_details', to='lab.releasedetail')),
                ('temp_booking', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='lab.booking')),
            ],
            options={
                'ordering': ['date', 'id'],
                'indexes': [
                    models.Index(fields=['date', 'is_booked'], name='release_day_lookup_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('release', 'date'), name='release_day_unique'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('booking_created', 'Booking created'), ('booking_approved', 'Booking approved'), ('booking_rejected', 'Booking rejected'), ('booking_cancelled', 'Booking cancelled'), ('temp_release_created', 'Temporary release created'), ('temp_release_cancelled', 'Temporary release cancelled'), ('temp_release_claimed', 'Released date claimed')], max_length=32)),
                ('message', models.TextField()),
                ('metadata', models.JSONField(blank=True, default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('is_read', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['user', 'is_read', 'created_at'], name='notification_inbox_idx'),
                ],
            },
        ),
    ]
