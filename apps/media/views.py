"""Back-office media library API (section `media`)."""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from apps.users.permissions import HasSection

from .models import MediaFolder, MediaItem
from .serializers import (
    MediaFolderSerializer,
    MediaFolderWriteSerializer,
    MediaIdsSerializer,
    MediaItemSerializer,
    MediaItemUpdateSerializer,
    MediaMoveSerializer,
    MediaRegisterSerializer,
    MediaUploadSerializer,
)
from .services import (
    MediaError,
    bulk_delete_items,
    create_folder,
    delete_folder,
    delete_item,
    folder_tree,
    list_items,
    move_items,
    register_media,
    rename_folder,
    update_item,
    upload_files,
)
from .storage import StorageError, configured_buckets


class MediaItemViewSet(
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = MediaItem.objects.select_related('folder')
    serializer_class = MediaItemSerializer
    permission_classes = [HasSection]
    required_section = 'media'
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def list(self, request):
        params = request.query_params
        try:
            page = int(params.get('page', 1))
        except ValueError:
            page = 1
        result = list_items(
            page=page,
            folder=params.get('folder'),
            search=params.get('search'),
            mime=params.get('mime'),
        )
        result['items'] = MediaItemSerializer(result['items'], many=True).data
        return Response(result)

    def partial_update(self, request, pk=None):
        serializer = MediaItemUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            item = update_item(self.get_object(), actor=request.user, **serializer.validated_data)
        except MediaError as exc:
            return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(MediaItemSerializer(item).data)

    def destroy(self, request, *args, **kwargs):
        delete_item(self.get_object(), actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['post'])
    def upload(self, request):
        serializer = MediaUploadSerializer(data={
            'files': request.FILES.getlist('files') or request.FILES.getlist('file'),
            'folder_id': request.data.get('folder_id'),
        })
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            items = upload_files(data['files'], folder_id=data.get('folder_id'), actor=request.user)
        except StorageError as exc:
            return Response({'detail': str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        except MediaError as exc:
            return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(MediaItemSerializer(items, many=True).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def register(self, request):
        serializer = MediaRegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            item = register_media(actor=request.user, **serializer.validated_data)
        except MediaError as exc:
            return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(MediaItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def move(self, request):
        serializer = MediaMoveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            moved = move_items(data['ids'], data.get('folder_id'), actor=request.user)
        except MediaError as exc:
            return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'moved': moved})

    @action(detail=False, methods=['post'], url_path='bulk-delete')
    def bulk_delete(self, request):
        serializer = MediaIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            deleted = bulk_delete_items(serializer.validated_data['ids'], actor=request.user)
        except MediaError as exc:
            return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'deleted': deleted})

    @action(detail=False, methods=['get'])
    def buckets(self, request):
        return Response({'buckets': configured_buckets()})


class MediaFolderViewSet(
    mixins.ListModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = MediaFolder.objects.all()
    serializer_class = MediaFolderSerializer
    permission_classes = [HasSection]
    required_section = 'media'
    pagination_class = None

    def create(self, request):
        serializer = MediaFolderWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            folder = create_folder(data['name'], data.get('parent_id'), actor=request.user)
        except MediaError as exc:
            return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(MediaFolderSerializer(folder).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        serializer = MediaFolderWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            folder = rename_folder(self.get_object(), serializer.validated_data['name'], actor=request.user)
        except MediaError as exc:
            return Response({'detail': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(MediaFolderSerializer(folder).data)

    def destroy(self, request, *args, **kwargs):
        moved = delete_folder(self.get_object(), actor=request.user)
        return Response({'moved_items': moved})

    @action(detail=False, methods=['get'])
    def tree(self, request):
        return Response(folder_tree())
