from django.urls import path
from . import views

urlpatterns = [
    # Reports
    path('reports/', views.reports_api, name='reports_api'),
    path('reports', views.reports_api, name='reports_api_no_slash'),
    path('reports/<int:report_id>/', views.report_detail_api, name='report_detail_api'),
    path('reports/<int:report_id>', views.report_detail_api, name='report_detail_api_no_slash'),

    # Chat - handle both with and without trailing slashes
    path('chat/', views.chat_api, name='chat_api'),
    path('chat', views.chat_api, name='chat_api_no_slash'),
    path('chat/<str:session_id>/', views.chat_session_api, name='chat_session_api'),
    path('chat/<str:session_id>', views.chat_session_api, name='chat_session_api_no_slash'),

    # History
    path('history/', views.history_api, name='history_api'),
    path('history', views.history_api, name='history_api_no_slash'),
    path('history/<str:session_id>/', views.history_session_api, name='history_session_api'),
    path('history/<str:session_id>', views.history_session_api, name='history_session_api_no_slash'),
]
