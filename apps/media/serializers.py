from rest_framework import serializers

from .models import MediaFolder, MediaItem


class MediaItemSerializer(serializers.ModelSerializer):
    folder_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = MediaItem
        fields = [
            'id', 'filename', 'url', 'storage_key', 'bucket', 'file_size',
            'mime_type', 'width', 'height', 'alt_text', 'folder_id', 'created_at',
        ]
        read_only_fields = [field for field in fields if field not in ('filename', 'alt_text')]


class MediaItemUpdateSerializer(serializers.Serializer):
    filename = serializers.CharField(max_length=255, required=False)
    alt_text = serializers.CharField(max_length=500, required=False, allow_blank=True)


class MediaUploadSerializer(serializers.Serializer):
    files = serializers.ListField(child=serializers.FileField(), allow_empty=False)
    folder_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class MediaRegisterSerializer(serializers.Serializer):
    url = serializers.URLField(max_length=1000)
    filename = serializers.CharField(max_length=255, required=False, allow_blank=True)
    folder_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    storage_key = serializers.CharField(required=False, allow_blank=True)
    bucket = serializers.CharField(required=False, allow_blank=True)
    file_size = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    mime_type = serializers.CharField(required=False, allow_blank=True)
    width = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    height = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    alt_text = serializers.CharField(required=False, allow_blank=True)


class MediaMoveSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField())
    folder_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class MediaIdsSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField())


class MediaFolderSerializer(serializers.ModelSerializer):
    parent_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = MediaFolder
        fields = ['id', 'name', 'parent_id', 'level', 'created_at']
        read_only_fields = fields


class MediaFolderWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    parent_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
