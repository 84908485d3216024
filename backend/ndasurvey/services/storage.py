# ndasurvey/services/storage.py
"""
Document storage with local and cloud backends.
Set STORAGE_BACKEND env var to 'local' or 's3' to switch.

Every document is a JSON file addressed by a slash separated path, e.g.
``surveys/<id>.json``. The same interface backs the server's survey
collection and the client's draft store.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")  # 'local' or 's3'
DATA_DIR = os.getenv("DATA_DIR", "data")
S3_BUCKET = os.getenv("S3_BUCKET", "nda-survey-data")
AWS_REGION = os.getenv("AWS_REGION", "eu-central-1")


class StorageBackend:
    """Abstract storage interface"""

    def write_file(self, path: str, content: bytes) -> str:
        """Write file, return public URL or local path"""
        raise NotImplementedError

    def write_text(self, path: str, content: str) -> str:
        return self.write_file(path, content.encode('utf-8'))

    def write_json(self, path: str, data: dict) -> str:
        content = json.dumps(data, ensure_ascii=False, indent=2)
        return self.write_text(path, content)

    def read_file(self, path: str) -> bytes:
        raise NotImplementedError

    def read_text(self, path: str) -> str:
        return self.read_file(path).decode('utf-8')

    def read_json(self, path: str) -> dict:
        return json.loads(self.read_text(path))

    def exists(self, path: str) -> bool:
        raise NotImplementedError

    def delete(self, path: str) -> None:
        """Remove a file; missing files are ignored"""
        raise NotImplementedError

    def list_dir(self, path: str) -> list[str]:
        """List file names directly under a directory"""
        raise NotImplementedError


class LocalStorage(StorageBackend):
    """Local filesystem storage"""

    def __init__(self, base_dir: str | Path = "data"):
        self.base_dir = Path(base_dir)

    def _full_path(self, path: str) -> Path:
        return self.base_dir / path

    def write_file(self, path: str, content: bytes) -> str:
        full_path = self._full_path(path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        # Write to a sibling temp file and rename so readers never see half a document
        fd, tmp_name = tempfile.mkstemp(dir=full_path.parent, prefix=".tmp-")
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(content)
            os.replace(tmp_name, full_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return str(full_path)

    def read_file(self, path: str) -> bytes:
        with open(self._full_path(path), 'rb') as f:
            return f.read()

    def exists(self, path: str) -> bool:
        return self._full_path(path).exists()

    def delete(self, path: str) -> None:
        self._full_path(path).unlink(missing_ok=True)

    def list_dir(self, path: str) -> list[str]:
        full_path = self._full_path(path)
        if not full_path.exists():
            return []
        return sorted(p.name for p in full_path.iterdir()
                      if p.is_file() and not p.name.startswith(".tmp-"))


class S3Storage(StorageBackend):
    """AWS S3 storage backend"""

    def __init__(self, bucket: str, region: str = "eu-central-1", client=None):
        self.bucket = bucket
        self.region = region
        self._client = client

    @property
    def client(self):
        """Lazy load boto3 client"""
        if self._client is None:
            import boto3
            self._client = boto3.client('s3', region_name=self.region)
        return self._client

    def _s3_key(self, path: str) -> str:
        return path.replace('\\', '/')

    def write_file(self, path: str, content: bytes) -> str:
        key = self._s3_key(path)
        self.client.put_object(Bucket=self.bucket, Key=key, Body=content)
        return f"s3://{self.bucket}/{key}"

    def read_file(self, path: str) -> bytes:
        from botocore.exceptions import ClientError

        key = self._s3_key(path)
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey"):
                raise FileNotFoundError(f"s3://{self.bucket}/{key}") from e
            raise
        return response['Body'].read()

    def exists(self, path: str) -> bool:
        from botocore.exceptions import ClientError

        key = self._s3_key(path)
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise

    def delete(self, path: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=self._s3_key(path))

    def list_dir(self, path: str) -> list[str]:
        """List objects directly under a prefix, following continuation tokens"""
        prefix = self._s3_key(path).rstrip('/') + '/'
        files = []
        kwargs = {"Bucket": self.bucket, "Prefix": prefix, "Delimiter": '/'}
        while True:
            response = self.client.list_objects_v2(**kwargs)
            for obj in response.get('Contents', []):
                key = obj['Key']
                if key != prefix:
                    files.append(key.split('/')[-1])
            if not response.get('IsTruncated'):
                break
            kwargs["ContinuationToken"] = response['NextContinuationToken']
        return sorted(files)


# Global storage instance
_storage: Optional[StorageBackend] = None


def get_storage() -> StorageBackend:
    """Get storage backend singleton"""
    global _storage
    if _storage is None:
        if STORAGE_BACKEND == "s3":
            _storage = S3Storage(bucket=S3_BUCKET, region=AWS_REGION)
            logger.info("Storage: S3 bucket=%s region=%s", S3_BUCKET, AWS_REGION)
        else:
            _storage = LocalStorage(base_dir=DATA_DIR)
            logger.info("Storage: local filesystem at %s", DATA_DIR)
    return _storage
