"""Tests for object storage keys, uploads and the media library API."""

from io import BytesIO
from unittest import mock

import pytest
from botocore.exceptions import ClientError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from django.urls import reverse
from PIL import Image
from rest_framework import status
from rest_framework.test import APITestCase

from apps.media.models import MediaFolder, MediaItem
from apps.media.services import delete_folder, list_items
from apps.media.storage import StorageError, build_key, store_upload
from apps.users.models import User


def png_upload(name='foto.png', size=(40, 30)):
    buffer = BytesIO()
    Image.new('RGB', size, color='red').save(buffer, format='PNG')
    return SimpleUploadedFile(name, buffer.getvalue(), content_type='image/png')


def test_build_key_sanitises_name():
    assert build_key('Foto Tokyo (1).JPG', now_ms=1700000000000) == '1700000000000-Foto_Tokyo__1_.jpg'
    assert build_key('senza-estensione', now_ms=1) == '1-senza-estensione.bin'
    assert len(build_key('a' * 200 + '.png', now_ms=1)) == len('1-') + 80 + len('.png')


@mock.patch('apps.media.storage.boto3.client')
def test_store_upload_reads_image_size(client_factory):
    stored = store_upload(png_upload())
    client_factory.return_value.put_object.assert_called_once()
    kwargs = client_factory.return_value.put_object.call_args.kwargs
    assert kwargs['Bucket'] == 'media'
    assert kwargs['ContentType'] == 'image/png'
    assert (stored['width'], stored['height']) == (40, 30)
    assert stored['url'] == f"https://cdn.example.com/media/{stored['key']}"


@mock.patch('apps.media.storage.boto3.client')
def test_store_upload_wraps_client_errors(client_factory):
    client_factory.return_value.put_object.side_effect = ClientError(
        {'Error': {'Code': 'AccessDenied', 'Message': 'denied'}}, 'PutObject'
    )
    with pytest.raises(StorageError):
        store_upload(SimpleUploadedFile('a.pdf', b'%PDF', content_type='application/pdf'))


@override_settings(MEDIA_UPLOAD_MAX_SIZE=10)
def test_store_upload_refuses_large_files():
    with pytest.raises(StorageError, match='troppo grande'):
        store_upload(SimpleUploadedFile('a.pdf', b'x' * 11))


@pytest.mark.django_db
def test_delete_folder_moves_subtree_items_to_root():
    parent = MediaFolder.objects.create(name='Asia')
    child = MediaFolder.objects.create(name='Giappone', parent=parent)
    other = MediaFolder.objects.create(name='Europa')
    MediaItem.objects.create(filename='a.jpg', url='https://cdn.example.com/a.jpg', folder=child)
    MediaItem.objects.create(filename='b.jpg', url='https://cdn.example.com/b.jpg', folder=parent)
    kept = MediaItem.objects.create(filename='c.jpg', url='https://cdn.example.com/c.jpg', folder=other)

    assert delete_folder(parent) == 2
    assert list(MediaFolder.objects.values_list('name', flat=True)) == ['Europa']
    assert MediaItem.objects.filter(folder__isnull=True).count() == 2
    kept.refresh_from_db()
    assert kept.folder == other


@pytest.mark.django_db
def test_list_items_paginates_by_fifty():
    MediaItem.objects.bulk_create(
        [MediaItem(filename=f'{i}.jpg', url=f'https://cdn.example.com/{i}.jpg') for i in range(51)]
    )
    first = list_items(page=1)
    assert (first['total'], first['pages'], len(first['items'])) == (51, 2, 50)
    assert len(list_items(page=2)['items']) == 1


class MediaAPITests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(email='admin@mishatravel.com', role=User.RoleChoices.ADMIN)
        self.client.force_authenticate(self.admin)

    @mock.patch('apps.media.storage.boto3.client')
    def test_upload_into_folder(self, client_factory):
        folder = MediaFolder.objects.create(name='Copertine')
        response = self.client.post(
            reverse('media-item-upload'),
            {'files': [png_upload('uno.png'), png_upload('due.png')], 'folder_id': str(folder.pk)},
            format='multipart',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(len(response.data), 2)
        self.assertEqual(MediaItem.objects.filter(folder=folder).count(), 2)
        self.assertEqual(client_factory.return_value.put_object.call_count, 2)

    def test_register_external_url_and_filter(self):
        response = self.client.post(
            reverse('media-item-register'),
            {'url': 'https://images.example.com/tokyo.jpg', 'mime_type': 'image/jpeg'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data['filename'], 'tokyo.jpg')

        response = self.client.get(reverse('media-item-list'), {'folder': 'root', 'mime': 'image/'})
        self.assertEqual(response.data['total'], 1)

    def test_move_to_unknown_folder(self):
        item = MediaItem.objects.create(filename='a.jpg', url='https://cdn.example.com/a.jpg')
        response = self.client.post(
            reverse('media-item-move'), {'ids': [item.pk], 'folder_id': '999'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @mock.patch('apps.media.storage.boto3.client')
    def test_delete_survives_storage_failure(self, client_factory):
        client_factory.return_value.delete_object.side_effect = ClientError(
            {'Error': {'Code': 'NoSuchKey', 'Message': 'missing'}}, 'DeleteObject'
        )
        item = MediaItem.objects.create(
            filename='a.jpg', url='https://cdn.example.com/media/k.jpg', storage_key='k.jpg', bucket='media'
        )
        response = self.client.delete(reverse('media-item-detail', args=[item.pk]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(MediaItem.objects.exists())

    def test_sibling_folder_names_are_unique(self):
        parent = MediaFolder.objects.create(name='Asia')
        url = reverse('media-folder-list')
        response = self.client.post(url, {'name': 'Giappone', 'parent_id': str(parent.pk)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        response = self.client.post(url, {'name': 'giappone', 'parent_id': str(parent.pk)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(url, {'name': 'Giappone'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_tree_counts(self):
        folder = MediaFolder.objects.create(name='Asia')
        MediaItem.objects.create(filename='a.jpg', url='https://cdn.example.com/a.jpg', folder=folder)
        MediaItem.objects.create(filename='b.jpg', url='https://cdn.example.com/b.jpg')
        data = self.client.get(reverse('media-folder-tree')).data
        self.assertEqual((data['total'], data['root']), (2, 1))
        self.assertEqual(data['folders'][0]['item_count'], 1)
