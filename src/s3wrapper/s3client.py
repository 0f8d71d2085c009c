from botocore.config import Config
from botocore.exceptions import ClientError
from s3wrapper.exceptions import S3NotFoundError
from s3wrapper.exceptions import S3OperationError
from s3wrapper.interfaces import IS3Client
from zope.interface import implementer

import boto3
import logging


logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NoSuchBucket", "NotFound"})


@implementer(IS3Client)
class S3Client:
    """Thin boto3 wrapper for S3-compatible object storage.

    The boto3 client is built lazily and rebuilt after :meth:`reconnect`.
    Not safe to share between threads.
    """

    def __init__(
        self,
        region_name=None,
        endpoint_url=None,
        aws_access_key_id=None,
        aws_secret_access_key=None,
        use_ssl=True,
        addressing_style="auto",
        connect_timeout=60,
        read_timeout=60,
    ):
        self.region_name = region_name
        self._config = Config(
            s3={"addressing_style": addressing_style},
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
        )

        kwargs = {"config": self._config, "use_ssl": use_ssl}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        if region_name:
            kwargs["region_name"] = region_name
        if aws_access_key_id:
            kwargs["aws_access_key_id"] = aws_access_key_id
        if aws_secret_access_key:
            kwargs["aws_secret_access_key"] = aws_secret_access_key
        if not use_ssl:
            logger.warning(
                "S3 SSL is disabled: data and credentials are transmitted in cleartext"
            )
        self._client_kwargs = kwargs
        self._client = None

    @property
    def s3(self):
        """The underlying boto3 client, created on first use."""
        if self._client is None:
            self._client = boto3.client("s3", **self._client_kwargs)
        return self._client

    def reconnect(self):
        """Drop the boto3 client; the next call builds a fresh one."""
        self._shutdown()

    def close(self):
        self._shutdown()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _shutdown(self):
        client, self._client = self._client, None
        if client is None:
            return
        try:
            client.close()
        except Exception:
            logger.warning("Error while shutting down the S3 client", exc_info=True)

    def _wrap_client_error(self, e, operation, bucket, key=None):
        """Translate ClientError into S3NotFoundError or S3OperationError."""
        code = e.response.get("Error", {}).get("Code", "Unknown")
        location = f"s3://{bucket}/{key}" if key is not None else f"bucket={bucket}"
        logger.debug("S3 %s failed for %s: %s", operation, location, e)
        if code in _NOT_FOUND_CODES:
            raise S3NotFoundError(f"S3 {operation}: {location} not found") from e
        raise S3OperationError(f"S3 {operation} failed for {location}: {code}") from e

    def head_object(self, bucket, key):
        try:
            return self.s3.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES:
                return None
            self._wrap_client_error(e, "head", bucket, key)

    def get_object(self, bucket, key):
        try:
            return self.s3.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            self._wrap_client_error(e, "get", bucket, key)

    def put_object(self, bucket, key, body=b"", metadata=None, acl=None):
        kwargs = {"Bucket": bucket, "Key": key, "Body": body}
        if metadata:
            kwargs["Metadata"] = metadata
        if acl:
            kwargs["ACL"] = acl
        try:
            return self.s3.put_object(**kwargs)
        except ClientError as e:
            self._wrap_client_error(e, "put", bucket, key)

    def delete_object(self, bucket, key):
        try:
            self.s3.delete_object(Bucket=bucket, Key=key)
        except ClientError as e:
            self._wrap_client_error(e, "delete", bucket, key)

    def list_objects(
        self, bucket, prefix="", delimiter=None, continuation_token=None, max_keys=None
    ):
        """Return a single ``list_objects_v2`` page."""
        kwargs = {"Bucket": bucket, "Prefix": prefix}
        if delimiter:
            kwargs["Delimiter"] = delimiter
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token
        if max_keys:
            kwargs["MaxKeys"] = max_keys
        try:
            return self.s3.list_objects_v2(**kwargs)
        except ClientError as e:
            self._wrap_client_error(e, "list", bucket, prefix)

    def bucket_exists(self, bucket):
        try:
            self.s3.head_bucket(Bucket=bucket)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES:
                return False
            self._wrap_client_error(e, "head-bucket", bucket)
        return True

    def create_bucket(self, bucket, acl=None):
        kwargs = {"Bucket": bucket}
        if self.region_name and self.region_name != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {
                "LocationConstraint": self.region_name
            }
        if acl:
            kwargs["ACL"] = acl
            kwargs["ObjectOwnership"] = "ObjectWriter"
        try:
            return self.s3.create_bucket(**kwargs)
        except ClientError as e:
            self._wrap_client_error(e, "create-bucket", bucket)

    def get_bucket_acl(self, bucket):
        try:
            return self.s3.get_bucket_acl(Bucket=bucket)
        except ClientError as e:
            self._wrap_client_error(e, "get-bucket-acl", bucket)

    def get_object_acl(self, bucket, key):
        try:
            return self.s3.get_object_acl(Bucket=bucket, Key=key)
        except ClientError as e:
            self._wrap_client_error(e, "get-object-acl", bucket, key)
