import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('authentication', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Shift',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=[('open', 'Open'), ('closed', 'Closed')], db_index=True, default='open', max_length=10)),
                ('opening_cash', models.DecimalField(decimal_places=3, default=0, max_digits=12)),
                ('closing_cash', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ('expected_cash', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ('cash_difference', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ('opened_at', models.DateTimeField(auto_now_add=True)),
                ('closed_at', models.DateTimeField(blank=True, null=True)),
                ('branch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='shifts', to='authentication.branch')),
                ('cashier', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='shifts', to=settings.AUTH_USER_MODEL)),
                ('restaurant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='shifts', to='authentication.restaurant')),
            ],
            options={
                'db_table': 'shifts',
                'ordering': ['-opened_at'],
            },
        ),
        migrations.CreateModel(
            name='ShiftTransaction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('type', models.CharField(choices=[('cash_in', 'Cash In'), ('cash_out', 'Cash Out')], max_length=10)),
                ('amount', models.DecimalField(decimal_places=3, max_digits=12)),
                ('reason', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('branch', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='shift_transactions', to='authentication.branch')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ('restaurant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='shift_transactions', to='authentication.restaurant')),
                ('shift', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='transactions', to='shifts.shift')),
            ],
            options={
                'db_table': 'shift_transactions',
                'ordering': ['-created_at'],
            },
        ),
    ]
