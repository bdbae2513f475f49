from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Currency',
            fields=[
                ('code', models.CharField(max_length=3, primary_key=True, serialize=False, unique=True)),
                ('name', models.CharField(max_length=100)),
                ('flag_emoji', models.CharField(blank=True, default='', max_length=16)),
                ('buy_rate', models.DecimalField(decimal_places=6, max_digits=18)),
                ('sell_rate', models.DecimalField(decimal_places=6, max_digits=18)),
                ('stock_amount', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=20)),
                ('low_stock_threshold', models.DecimalField(decimal_places=2, default=Decimal('1000'), max_digits=20)),
                ('buy_available', models.BooleanField(default=True)),
                ('sell_available', models.BooleanField(default=True)),
                ('min_transaction', models.DecimalField(blank=True, decimal_places=2, max_digits=20, null=True)),
                ('max_transaction', models.DecimalField(blank=True, decimal_places=2, max_digits=20, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name_plural': 'currencies',
                'db_table': 'currencies',
                'ordering': ['code'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('stock_amount__gte', 0)), name='currency_stock_non_negative'),
                    models.CheckConstraint(condition=models.Q(('buy_rate__gt', 0), ('sell_rate__gt', 0)), name='currency_rates_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Customer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('id_number', models.CharField(max_length=64, unique=True)),
                ('full_name', models.CharField(max_length=200)),
                ('phone_number', models.CharField(blank=True, default='', max_length=32)),
                ('id_type', models.CharField(blank=True, default='', max_length=32)),
                ('kyc_status', models.CharField(choices=[('pending', 'Pending'), ('verified', 'Verified'), ('flagged', 'Flagged')], default='pending', max_length=16)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'customers',
            },
        ),
        migrations.CreateModel(
            name='TicketSequence',
            fields=[
                ('day', models.DateField(primary_key=True, serialize=False)),
                ('issued', models.PositiveIntegerField(default=0)),
            ],
            options={
                'db_table': 'ticket_sequences',
            },
        ),
        migrations.CreateModel(
            name='QueueEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ticket_number', models.CharField(max_length=16)),
                ('queue_date', models.DateField(default=django.utils.timezone.localdate)),
                ('service_type', models.CharField(choices=[('buy', 'Buy'), ('sell', 'Sell')], max_length=4)),
                ('requested_amount', models.DecimalField(decimal_places=2, max_digits=20)),
                ('status', models.CharField(choices=[('waiting', 'Waiting'), ('processing', 'Processing'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='waiting', max_length=16)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('called_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True, default='')),
                ('assigned_teller', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='queue_entries', to=settings.AUTH_USER_MODEL)),
                ('currency', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='queue_entries', to='bureau.currency')),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='queue_entries', to='bureau.customer')),
            ],
            options={
                'verbose_name_plural': 'queue entries',
                'db_table': 'queue_entries',
                'ordering': ['created_at', 'id'],
                'indexes': [models.Index(fields=['status', 'created_at'], name='queue_status_created_idx')],
                'constraints': [models.UniqueConstraint(fields=('queue_date', 'ticket_number'), name='unique_ticket_per_day')],
            },
        ),
        migrations.CreateModel(
            name='ExchangeTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reference', models.CharField(max_length=40, unique=True)),
                ('transaction_type', models.CharField(choices=[('buy', 'Buy'), ('sell', 'Sell')], max_length=4)),
                ('amount_foreign', models.DecimalField(decimal_places=2, max_digits=20)),
                ('exchange_rate', models.DecimalField(decimal_places=6, max_digits=18)),
                ('amount_local', models.DecimalField(decimal_places=2, max_digits=24)),
                ('is_suspicious', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('currency', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='bureau.currency')),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='bureau.customer')),
                ('queue_entry', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='transaction', to='bureau.queueentry')),
                ('teller', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'transactions',
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['teller', '-created_at'], name='transaction_teller_recent_idx')],
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(max_length=32)),
                ('message', models.TextField()),
                ('recipient_role', models.CharField(default='admin', max_length=32)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'db_table': 'notifications',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(max_length=64)),
                ('details', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'audit_logs',
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['action', 'created_at'], name='audit_action_created_idx')],
            },
        ),
    ]
