"""
URL configuration for the momentum project.

Every app exposes its endpoints under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Momentum Lab Admin Panel"
admin.site.site_title = "Momentum Lab Admin Portal"
admin.site.index_title = "Welcome to Momentum Lab Admin"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('momentum.core.urls')),
    path('api/v1/', include('momentum.people.urls')),
    path('api/v1/', include('momentum.projects.urls')),
    path('api/v1/', include('momentum.funding.urls')),
    path('api/v1/', include('momentum.inventory.urls')),
    path('api/v1/', include('momentum.orders.urls')),
    path('api/v1/', include('momentum.events.urls')),
    path('api/v1/', include('momentum.eln.urls')),
    path('api/v1/', include('momentum.reports.urls')),
]
