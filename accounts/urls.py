from django.urls import path

from . import views

urlpatterns = [
    path('signup', views.signup_api, name='signup_api'),
    path('login', views.login_api, name='login_api'),
    path('logout', views.logout_api, name='logout_api'),
    path('me', views.me_api, name='me_api'),
    path('forgot-password', views.forgot_password_api, name='forgot_password_api'),
    path('reset-password', views.reset_password_api, name='reset_password_api'),
]
