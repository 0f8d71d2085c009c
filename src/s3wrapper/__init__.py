"""Treat S3 objects and local files as interchangeable paths."""

from s3wrapper.exceptions import BucketAlreadyExistsError
from s3wrapper.exceptions import PreconditionError
from s3wrapper.exceptions import S3NotFoundError
from s3wrapper.exceptions import S3OperationError
from s3wrapper.exceptions import S3WrapperError
from s3wrapper.exceptions import UnsupportedOperationError
from s3wrapper.filewrapper import FileWrapper
from s3wrapper.listing import ls
from s3wrapper.listing import S3File
from s3wrapper.listing import S3List
from s3wrapper.retry import RetryPolicy
from s3wrapper.s3client import S3Client
from s3wrapper.transfer import BulkTransfer
from s3wrapper.uri import S3URI


__all__ = [
    "BucketAlreadyExistsError",
    "BulkTransfer",
    "FileWrapper",
    "PreconditionError",
    "RetryPolicy",
    "S3Client",
    "S3File",
    "S3List",
    "S3NotFoundError",
    "S3OperationError",
    "S3URI",
    "S3WrapperError",
    "UnsupportedOperationError",
    "ls",
]
