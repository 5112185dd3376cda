import uuid

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
            name='UserProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(blank=True, max_length=150, verbose_name='Full Name')),
                ('location', models.CharField(blank=True, max_length=255, null=True, verbose_name='Location')),
                ('credits_purchased', models.FloatField(default=0, verbose_name='Credits Purchased (t CO2e)')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'user_profile',
            },
        ),
        migrations.CreateModel(
            name='Project',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200, verbose_name='Project Name')),
                ('description', models.TextField(verbose_name='Description')),
                ('location', models.CharField(max_length=255, verbose_name='Location')),
                ('area', models.FloatField(validators=[django.core.validators.MinValueValidator(0)], verbose_name='Area (ha)')),
                ('ecosystem_type', models.CharField(choices=[('Mangrove', 'Mangrove'), ('Seagrass', 'Seagrass'), ('Salt Marsh', 'Salt Marsh'), ('Coastal', 'Coastal'), ('Other', 'Other')], max_length=20, verbose_name='Ecosystem Type')),
                ('plantation_type', models.CharField(blank=True, max_length=100, null=True, verbose_name='Plantation Type')),
                ('annual_co2', models.FloatField(verbose_name='Annual CO2 (t/year)')),
                ('lifetime_co2', models.FloatField(verbose_name='Lifetime CO2 (t, 20 years)')),
                ('co2_captured', models.FloatField(verbose_name='CO2 Captured (t)')),
                ('credits_earned', models.FloatField(default=0, verbose_name='Credits Available')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('verified', 'Verified'), ('rejected', 'Rejected')], default='pending', max_length=10)),
                ('proof_file', models.FileField(blank=True, null=True, upload_to='proofs/', verbose_name='Proof Document')),
                ('rejection_reason', models.TextField(blank=True, null=True)),
                ('submitted_at', models.DateTimeField(auto_now_add=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='projects', to=settings.AUTH_USER_MODEL, verbose_name='Contributor')),
                ('verifier', models.ForeignKey(blank=True, limit_choices_to={'groups__name': 'Verifier'}, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_reviews', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'projects',
                'ordering': ['-submitted_at'],
            },
        ),
        migrations.CreateModel(
            name='CreditPurchase',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('credits', models.FloatField(validators=[django.core.validators.MinValueValidator(0)])),
                ('timestamp', models.DateTimeField(auto_now_add=True)),
                ('buyer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='credit_purchases', to=settings.AUTH_USER_MODEL)),
                ('contributor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='credit_sales', to=settings.AUTH_USER_MODEL)),
                ('project', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='purchases', to='dashboard.project')),
            ],
            options={
                'db_table': 'credit_transactions',
                'ordering': ['-timestamp'],
            },
        ),
    ]
