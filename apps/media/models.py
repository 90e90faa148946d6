"""Media library models: a folder tree and the stored files."""

from django.db import models
from django.utils.translation import gettext_lazy as _
from mptt.models import MPTTModel, TreeForeignKey


class MediaFolder(MPTTModel):
    """Folder of the media library, nested through MPTT."""

    name = models.CharField(max_length=255, verbose_name=_("Nome"))
    parent = TreeForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='children',
        verbose_name=_("Cartella padre"),
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class MPTTMeta:
        order_insertion_by = ['name']

    class Meta:
        verbose_name = _("Cartella media")
        verbose_name_plural = _("Cartelle media")
        constraints = [
            models.UniqueConstraint(fields=['parent', 'name'], name='unique_media_folder_sibling'),
            models.UniqueConstraint(
                fields=['name'],
                condition=models.Q(parent__isnull=True),
                name='unique_media_folder_root',
            ),
        ]

    def __str__(self):
        return self.get_full_path()

    def get_full_path(self):
        return " / ".join(node.name for node in self.get_ancestors(include_self=True))


class MediaItem(models.Model):
    """File stored in object storage (or referenced by an external URL)."""

    filename = models.CharField(max_length=255)
    url = models.URLField(max_length=1000)
    storage_key = models.CharField(max_length=500, blank=True)
    bucket = models.CharField(max_length=100, blank=True)
    file_size = models.PositiveBigIntegerField(null=True, blank=True)
    mime_type = models.CharField(max_length=100, blank=True)
    width = models.PositiveIntegerField(null=True, blank=True)
    height = models.PositiveIntegerField(null=True, blank=True)
    alt_text = models.CharField(max_length=500, blank=True)
    folder = models.ForeignKey(
        MediaFolder,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='items',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("File media")
        verbose_name_plural = _("File media")
        ordering = ['-created_at', '-pk']
        indexes = [
            models.Index(fields=['folder', 'created_at']),
            models.Index(fields=['mime_type']),
        ]

    def __str__(self):
        return self.filename

    @property
    def is_image(self):
        return self.mime_type.startswith("image/")
