# Generated manually for production forms and their status history

import django.db.models.deletion
import production.models
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ProductionForm',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('folio', models.CharField(max_length=50, unique=True)),
                ('internal_folio', models.CharField(blank=True, max_length=50)),
                ('rm_deduction_folio', models.CharField(blank=True, max_length=50)),
                ('fg_folio', models.CharField(blank=True, max_length=50)),
                ('product_code', models.CharField(db_column='product_id', help_text='Catalog product code, e.g. conito', max_length=60)),
                ('liters', models.DecimalField(decimal_places=2, max_digits=10)),
                ('date', models.DateField()),
                ('responsible', models.CharField(blank=True, max_length=150)),
                ('lot_number', models.CharField(blank=True, max_length=60)),
                ('marmita', models.CharField(blank=True, max_length=60)),
                ('expiry_date', models.DateField(blank=True, db_column='caducidad', null=True)),
                ('status', models.CharField(choices=[('draft', 'Borrador'), ('in_progress', 'En Proceso'), ('pending_review', 'Pendiente de Revisión'), ('completed', 'Completado')], db_index=True, default='draft', max_length=20)),
                ('ingredients', models.JSONField(blank=True, default=list, help_text='[{name, quantity, unit}] in recipe order')),
                ('ingredient_times', models.JSONField(blank=True, default=list)),
                ('ingredients_derived', models.BooleanField(default=False, help_text='Ingredients come from the last successful recipe derivation')),
                ('start_time', models.CharField(blank=True, max_length=10)),
                ('end_time', models.CharField(blank=True, max_length=10)),
                ('hour_tracking', models.JSONField(blank=True, default=production.models.process_tracking_rows)),
                ('temperature', models.JSONField(blank=True, default=production.models.process_tracking_rows)),
                ('pressure', models.JSONField(blank=True, default=production.models.process_tracking_rows)),
                ('quality_times', models.JSONField(blank=True, default=production.models.quality_rows)),
                ('brix', models.JSONField(blank=True, default=production.models.quality_rows)),
                ('quality_temp', models.JSONField(blank=True, default=production.models.quality_rows)),
                ('texture', models.JSONField(blank=True, default=production.models.quality_rows)),
                ('color', models.JSONField(blank=True, default=production.models.quality_rows)),
                ('viscosity', models.JSONField(blank=True, default=production.models.quality_rows)),
                ('smell', models.JSONField(blank=True, default=production.models.quality_rows)),
                ('taste', models.JSONField(blank=True, default=production.models.quality_rows)),
                ('foreign_material', models.JSONField(blank=True, default=production.models.quality_rows)),
                ('status_check', models.JSONField(blank=True, default=production.models.quality_rows)),
                ('quality_notes', models.TextField(blank=True)),
                ('destination_type', models.JSONField(blank=True, default=production.models.destination_rows)),
                ('destination_kilos', models.JSONField(blank=True, default=production.models.destination_rows)),
                ('destination_product', models.JSONField(blank=True, default=production.models.destination_rows)),
                ('destination_estimation', models.JSONField(blank=True, default=production.models.destination_rows)),
                ('total_kilos', models.CharField(blank=True, max_length=30)),
                ('yield_amount', models.CharField(blank=True, db_column='yield', max_length=30)),
                ('start_state', models.CharField(blank=True, choices=[('good', 'Bueno'), ('bad', 'Malo')], max_length=10)),
                ('end_state', models.CharField(blank=True, choices=[('good', 'Bueno'), ('bad', 'Malo')], max_length=10)),
                ('liberation_folio', models.CharField(blank=True, max_length=50)),
                ('c_p', models.CharField(blank=True, max_length=30)),
                ('cm_consistometer', models.CharField(blank=True, max_length=30)),
                ('final_brix', models.CharField(blank=True, max_length=30)),
                ('signature_url', models.TextField(blank=True)),
                ('extra_data', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_production_forms', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='updated_production_forms', to=settings.AUTH_USER_MODEL)),
                ('last_updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='last_updated_production_forms', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Production Form',
                'verbose_name_plural': 'Production Forms',
                'db_table': 'production_forms',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='ProductionFormStatusHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('from_status', models.CharField(blank=True, max_length=20)),
                ('to_status', models.CharField(max_length=20)),
                ('transition', models.CharField(blank=True, max_length=50)),
                ('automatic', models.BooleanField(default=False, help_text='Fired by a field edit rather than a status button')),
                ('trigger_field', models.CharField(blank=True, max_length=60)),
                ('changed_at', models.DateTimeField(auto_now_add=True)),
                ('changed_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ('form', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='status_history', to='production.productionform')),
            ],
            options={
                'verbose_name': 'Production Form Status History',
                'verbose_name_plural': 'Production Form Status Histories',
                'ordering': ['-changed_at', '-id'],
            },
        ),
    ]
