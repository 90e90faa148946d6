from django.contrib import admin
from mptt.admin import MPTTModelAdmin

from .models import MediaFolder, MediaItem


@admin.register(MediaFolder)
class MediaFolderAdmin(MPTTModelAdmin):
    list_display = ('name', 'created_at')
    search_fields = ('name',)
    mptt_level_indent = 20


@admin.register(MediaItem)
class MediaItemAdmin(admin.ModelAdmin):
    list_display = ('filename', 'mime_type', 'file_size', 'folder', 'created_at')
    list_filter = ('mime_type', 'bucket')
    search_fields = ('filename', 'alt_text')
    readonly_fields = ('storage_key', 'bucket', 'created_at')
