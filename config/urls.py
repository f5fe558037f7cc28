"""URL configuration for the van rental backend.

The `urlpatterns` list routes URLs to views. It includes both Django admin
and the application-level routers of each app.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/vans/', include('apps.vans.urls')),
    path('api/v1/bookings/', include('apps.bookings.urls')),
    path('api/v1/reviews/', include('apps.reviews.urls')),
    path('api/v1/users/', include('apps.users.urls')),
]
