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
            name='ChatSession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('session_id', models.CharField(help_text='Caller-supplied conversation id.', max_length=100, unique=True)),
                ('title', models.CharField(default='New Chat', max_length=100)),
                ('type', models.CharField(choices=[('report', 'Report Analysis'), ('medication', 'Medication Check')], default='report', max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='chat_sessions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-updated_at'],
                'indexes': [models.Index(fields=['user', 'type', 'is_active', '-updated_at'], name='chatsession_owner_listing_idx')],
            },
        ),
        migrations.CreateModel(
            name='ChatMessage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('user', 'User'), ('assistant', 'Assistant'), ('system', 'System')], max_length=10)),
                ('content', models.TextField()),
                ('timestamp', models.DateTimeField(default=django.utils.timezone.now)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('session', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='messages', to='medassist.chatsession')),
            ],
            options={
                'ordering': ['timestamp', 'id'],
            },
        ),
        migrations.CreateModel(
            name='MedicalReport',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('file_name', models.CharField(help_text='Generated storage-safe file name.', max_length=300)),
                ('original_name', models.CharField(max_length=255)),
                ('file_type', models.CharField(help_text='Declared MIME type of the upload.', max_length=100)),
                ('file_size', models.PositiveIntegerField(help_text='Size of the upload in bytes.')),
                ('report_type', models.CharField(choices=[('blood_test', 'Blood Test'), ('x_ray', 'X-Ray'), ('mri', 'MRI'), ('ct_scan', 'CT Scan'), ('prescription', 'Prescription'), ('lab_report', 'Lab Report'), ('other', 'Other')], default='other', max_length=20)),
                ('analysis_status', models.CharField(choices=[('pending', 'Pending'), ('processing', 'Processing'), ('completed', 'Completed'), ('failed', 'Failed')], default='pending', max_length=20)),
                ('extracted_text', models.TextField(blank=True, default='')),
                ('ai_analysis', models.JSONField(blank=True, default=None, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('uploaded_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('analyzed_at', models.DateTimeField(blank=True, null=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='medical_reports', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-uploaded_at', '-id'],
                'constraints': [models.CheckConstraint(condition=models.Q(models.Q(('ai_analysis__isnull', False), ('analysis_status', 'completed')), models.Q(models.Q(('analysis_status', 'completed'), _negated=True), ('ai_analysis__isnull', True)), _connector='OR'), name='medicalreport_analysis_iff_completed')],
            },
        ),
    ]
