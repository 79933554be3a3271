"""
Evidence Store - public-read object storage for photos.
"""

from trinetra.config.firebase import get_bucket
from trinetra.core.exceptions import UploadFailedError
from trinetra.core.settings import settings
import logging

logger = logging.getLogger(__name__)


class EvidenceStore:
    """
    Thin wrapper over the Cloud Storage bucket.

    Uploads never overwrite: if_generation_match=0 makes the bucket reject
    an existing key.
    """

    def __init__(self, bucket=None):
        self._bucket = bucket

    @property
    def bucket(self):
        if self._bucket is None:
            self._bucket = get_bucket()
        return self._bucket

    def upload(self, object_name: str, data: bytes, content_type: str) -> str:
        """
        Upload bytes under object_name and make them publicly readable.

        Returns:
            str: Public URL of the object

        Raises:
            UploadFailedError: any storage failure (duplicate key included)
        """
        try:
            blob = self.bucket.blob(object_name)
            blob.cache_control = f"public, max-age={settings.EVIDENCE_CACHE_SECONDS}"
            blob.upload_from_string(data, content_type=content_type, if_generation_match=0)
            blob.make_public()
        except Exception as e:
            logger.error(f"Evidence upload failed for {object_name}: {e}", exc_info=True)
            raise UploadFailedError("Photo upload failed. Please try again.")

        logger.info(f"Uploaded evidence {object_name} ({len(data)} bytes, {content_type})")
        return blob.public_url
