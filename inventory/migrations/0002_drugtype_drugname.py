import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('inventory', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='DrugType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type_name', models.CharField(max_length=100, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Drug type',
                'verbose_name_plural': 'Drug types',
                'ordering': ['type_name'],
            },
        ),
        migrations.CreateModel(
            name='DrugName',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('drug_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='names', to='inventory.drugtype')),
            ],
            options={
                'verbose_name': 'Drug name',
                'verbose_name_plural': 'Drug names',
                'ordering': ['name'],
            },
        ),
        migrations.AddConstraint(
            model_name='drugname',
            constraint=models.UniqueConstraint(fields=('drug_type', 'name'), name='unique_name_per_type'),
        ),
    ]
