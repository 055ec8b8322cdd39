from decimal import Decimal

import django.core.validators
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
            name='Account',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=255)),
                ('role', models.CharField(choices=[('admin', 'Admin'), ('institute', 'Institute'), ('pharmacy', 'Pharmacy')], db_index=True, max_length=20)),
                ('license_number', models.CharField(blank=True, max_length=100, null=True)),
                ('address', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='children', to='inventory.account')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='account', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Account',
                'verbose_name_plural': 'Accounts',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Drug',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('drug_type', models.CharField(max_length=100)),
                ('name', models.CharField(db_index=True, max_length=255)),
                ('batch_no', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True, default='')),
                ('stock', models.PositiveIntegerField(db_index=True, default=0)),
                ('mfg_date', models.DateField()),
                ('exp_date', models.DateField(db_index=True)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('category', models.CharField(blank=True, choices=[('IPD', 'IPD'), ('OPD', 'OPD'), ('OUTREACH', 'Outreach')], max_length=20, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='drugs', to='inventory.account')),
            ],
            options={
                'verbose_name': 'Drug',
                'verbose_name_plural': 'Drugs',
                'ordering': ['mfg_date', 'name'],
            },
        ),
        migrations.AddConstraint(
            model_name='drug',
            constraint=models.UniqueConstraint(fields=('created_by', 'batch_no'), name='unique_batch_per_owner'),
        ),
        migrations.AddIndex(
            model_name='drug',
            index=models.Index(fields=['created_by', 'stock'], name='drug_owner_stock_idx'),
        ),
    ]
