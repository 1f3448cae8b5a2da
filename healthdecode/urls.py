from django.contrib import admin
from django.urls import include, path

from .views import health

urlpatterns = [
    path('admin/', admin.site.urls),  # Admin panel
    path('api/auth/', include('accounts.urls')),  # Signup, login, password reset
    path('api/ai/', include('medassist.urls')),  # Reports, chat and history
    path('api/health', health, name='health'),
    path('api/health/', health, name='health_slash'),
]
