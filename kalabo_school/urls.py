# kalabo_school/urls.py
from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from django.views.generic import RedirectView

urlpatterns = [
    path('django-admin/', admin.site.urls),

    # Old login URLs all land on the custom sign-in page
    path('login/', RedirectView.as_view(pattern_name='signin', permanent=True)),
    path('accounts/login/', RedirectView.as_view(pattern_name='signin', permanent=True)),

    path('accounts/', include('accounts.urls')),
    path('', include('core.urls')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
