# marketplace/infrastructure/storage/storage_service.py

import boto3
from botocore.exceptions import ClientError, BotoCoreError
import logging
from typing import BinaryIO, Optional

from config import Config
from marketplace.domain.errors import StorageError

logger = logging.getLogger(__name__)


class StorageService:
    """
    Sube imágenes de productos al almacenamiento de objetos de la plataforma
    (endpoint compatible con S3) y retorna su URL pública.
    """

    def __init__(self, bucket_name: Optional[str] = None, base_url: Optional[str] = None, s3_client=None):
        self.bucket_name = bucket_name or Config.STORAGE_BUCKET
        self.base_url = (base_url or Config.SUPABASE_URL).rstrip('/')
        self.s3_client = s3_client or boto3.client(
            's3',
            endpoint_url=f"{self.base_url}/storage/v1/s3",
            region_name=Config.STORAGE_REGION,
            aws_access_key_id=Config.STORAGE_ACCESS_KEY_ID or None,
            aws_secret_access_key=Config.STORAGE_SECRET_ACCESS_KEY or None,
        )

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket_name}/{path}"

    def upload_file(self, path: str, file: BinaryIO, content_type: Optional[str] = None) -> str:
        content_type = content_type or 'application/octet-stream'

        try:
            self.s3_client.upload_fileobj(
                Fileobj=file,
                Bucket=self.bucket_name,
                Key=path,
                ExtraArgs={'ContentType': content_type}
            )
            return self.public_url(path)

        except ClientError as e:
            logger.error(f"Error de cliente S3 al subir {path} a {self.bucket_name}: {e}")
            raise StorageError(e.response.get('Error', {}).get('Message') or "Image upload failed") from e

        except BotoCoreError as e:
            logger.error(f"Error inesperado al subir el archivo {path}: {e}")
            raise StorageError("Image upload failed") from e
