from django.contrib import admin
from .models import ChatMessage, ChatSession, MedicalReport


@admin.register(MedicalReport)
class MedicalReportAdmin(admin.ModelAdmin):
    list_display = ('user', 'original_name', 'report_type', 'analysis_status', 'uploaded_at')
    list_filter = ('report_type', 'analysis_status', 'uploaded_at')
    search_fields = ('user__username', 'original_name', 'extracted_text')
    readonly_fields = ('uploaded_at', 'analyzed_at')


class ChatMessageInline(admin.TabularInline):
    model = ChatMessage
    extra = 0
    readonly_fields = ('role', 'content', 'timestamp', 'metadata')


@admin.register(ChatSession)
class ChatSessionAdmin(admin.ModelAdmin):
    list_display = ('user', 'session_id', 'title', 'type', 'is_active', 'updated_at')
    list_filter = ('type', 'is_active', 'updated_at')
    search_fields = ('user__username', 'session_id', 'title')
    readonly_fields = ('created_at', 'updated_at')
    inlines = [ChatMessageInline]

    def get_queryset(self, request):
        # Admins also see soft-deleted sessions
        return ChatSession.all_objects.select_related('user')


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ('session', 'role', 'timestamp', 'content_preview')
    list_filter = ('role', 'timestamp')
    search_fields = ('session__session_id', 'content')
    readonly_fields = ('timestamp',)

    def content_preview(self, obj):
        return obj.content[:50] + "..." if len(obj.content) > 50 else obj.content
    content_preview.short_description = 'Content Preview'
