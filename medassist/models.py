# medassist/models.py

from django.contrib.auth.models import User  # Using Django's built-in User model
from django.db import models
from django.db.models import Q
from django.utils import timezone


class MedicalReport(models.Model):
    """
    One uploaded document's processing record. The file itself is never
    stored, only its extracted text and the AI analysis bundle.
    """
    REPORT_TYPE_CHOICES = [
        ('blood_test', 'Blood Test'),
        ('x_ray', 'X-Ray'),
        ('mri', 'MRI'),
        ('ct_scan', 'CT Scan'),
        ('prescription', 'Prescription'),
        ('lab_report', 'Lab Report'),
        ('other', 'Other'),
    ]

    STATUS_PENDING = 'pending'
    STATUS_PROCESSING = 'processing'
    STATUS_COMPLETED = 'completed'
    STATUS_FAILED = 'failed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PROCESSING, 'Processing'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_FAILED, 'Failed'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='medical_reports')
    file_name = models.CharField(max_length=300, help_text="Generated storage-safe file name.")
    original_name = models.CharField(max_length=255)
    file_type = models.CharField(max_length=100, help_text="Declared MIME type of the upload.")
    file_size = models.PositiveIntegerField(help_text="Size of the upload in bytes.")
    report_type = models.CharField(max_length=20, choices=REPORT_TYPE_CHOICES, default='other')
    analysis_status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    extracted_text = models.TextField(blank=True, default='')
    # {"summary", "key_findings", "recommendations", "risk_factors", "confidence"}
    ai_analysis = models.JSONField(null=True, blank=True, default=None)
    metadata = models.JSONField(default=dict, blank=True)
    uploaded_at = models.DateTimeField(default=timezone.now)
    analyzed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-uploaded_at', '-id']
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(analysis_status='completed', ai_analysis__isnull=False)
                    | (~Q(analysis_status='completed') & Q(ai_analysis__isnull=True))
                ),
                name='medicalreport_analysis_iff_completed',
            ),
        ]

    def __str__(self):
        return f"{self.user.username}'s {self.report_type} report '{self.original_name}'"

    def _ensure_processing(self):
        if self.analysis_status != self.STATUS_PROCESSING:
            raise ValueError(f"Report {self.pk} already finished analysis with status '{self.analysis_status}'")

    def mark_completed(self, analysis, extra_metadata=None):
        self._ensure_processing()
        self.ai_analysis = analysis
        self.analysis_status = self.STATUS_COMPLETED
        self.analyzed_at = timezone.now()
        if extra_metadata:
            self.metadata = {**self.metadata, **extra_metadata}
        self.save(update_fields=['ai_analysis', 'analysis_status', 'analyzed_at', 'metadata'])

    def mark_failed(self):
        self._ensure_processing()
        self.ai_analysis = None
        self.analysis_status = self.STATUS_FAILED
        self.save(update_fields=['ai_analysis', 'analysis_status'])

    def to_dict(self, include_text=False):
        data = {
            "id": self.pk,
            "file_name": self.file_name,
            "original_name": self.original_name,
            "file_type": self.file_type,
            "file_size": self.file_size,
            "report_type": self.report_type,
            "analysis_status": self.analysis_status,
            "ai_analysis": self.ai_analysis,
            "uploaded_at": self.uploaded_at.isoformat(),
            "analyzed_at": self.analyzed_at.isoformat() if self.analyzed_at else None,
        }
        if include_text:
            data["extracted_text"] = self.extracted_text
        return data


class ChatSessionQuerySet(models.QuerySet):
    def deactivate(self):
        """Soft delete: active -> inactive, never reversed."""
        return self.filter(is_active=True).update(is_active=False, updated_at=timezone.now())


class ActiveChatSessionManager(models.Manager.from_queryset(ChatSessionQuerySet)):
    def get_queryset(self):
        return super().get_queryset().filter(is_active=True)


class ChatSession(models.Model):
    TYPE_REPORT = 'report'
    TYPE_MEDICATION = 'medication'
    TYPE_CHOICES = [
        (TYPE_REPORT, 'Report Analysis'),
        (TYPE_MEDICATION, 'Medication Check'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='chat_sessions')
    session_id = models.CharField(max_length=100, unique=True, help_text="Caller-supplied conversation id.")
    title = models.CharField(max_length=100, default='New Chat')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_REPORT)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Every normal read goes through `objects`, which hides soft-deleted sessions.
    objects = ActiveChatSessionManager()
    all_objects = ChatSessionQuerySet.as_manager()

    class Meta:
        ordering = ['-updated_at']
        indexes = [
            models.Index(fields=['user', 'type', 'is_active', '-updated_at'], name='chatsession_owner_listing_idx'),
        ]

    def __str__(self):
        return f"{self.user.username}: {self.title} ({self.type})"


class ChatMessage(models.Model):
    ROLE_CHOICES = [
        ('user', 'User'),
        ('assistant', 'Assistant'),
        ('system', 'System'),
    ]

    session = models.ForeignKey(ChatSession, on_delete=models.CASCADE, related_name='messages')
    role = models.CharField(max_length=10, choices=ROLE_CHOICES)
    content = models.TextField()
    timestamp = models.DateTimeField(default=timezone.now)
    # model name and usage estimate, or {"error": true} for fallback replies
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ['timestamp', 'id']

    def __str__(self):
        return f"{self.role} @ {self.timestamp}: {self.content[:30]}"

    def to_dict(self):
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }
