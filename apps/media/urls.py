from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import MediaFolderViewSet, MediaItemViewSet

router = DefaultRouter()
router.register(r'items', MediaItemViewSet, basename='media-item')
router.register(r'folders', MediaFolderViewSet, basename='media-folder')

urlpatterns = [
    path('', include(router.urls)),
]
