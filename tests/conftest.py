"""Shared fixtures: a moto S3 bucket and the matching local tree."""

from moto import mock_aws
from s3wrapper.s3client import S3Client

import boto3
import os
import pytest


BUCKET = "test-bucket"

BUCKET_FILES = {
    "bin/random_100.bin": os.urandom(100),
    "bin/random_1024.bin": os.urandom(1024),
    "bin/zero_100.bin": b"\0" * 100,
    "img/black.jpg": b"black jpeg",
    "img/gradiant.jpg": b"gradiant jpeg",
    "img/white.jpg": b"white jpeg",
    "root.txt": b"root text file\n",
}


@pytest.fixture
def s3_env():
    with mock_aws():
        boto3.client("s3", region_name="us-east-1").create_bucket(Bucket=BUCKET)
        yield


@pytest.fixture
def client(s3_env):
    with S3Client(region_name="us-east-1") as s3_client:
        yield s3_client


@pytest.fixture
def bucket_files(s3_env):
    """Upload the test tree: bin/ (3 files), img/ (3 files) and root.txt."""
    s3 = boto3.client("s3", region_name="us-east-1")
    for key, data in BUCKET_FILES.items():
        s3.put_object(Bucket=BUCKET, Key=key, Body=data)
    return BUCKET_FILES


@pytest.fixture
def local_tree(tmp_path):
    """The same tree as ``bucket_files`` on local disk."""
    root = tmp_path / "bucket_files"
    for key, data in BUCKET_FILES.items():
        path = root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return str(root)


def set_mtime_millis(path, millis):
    nanos = millis * 1_000_000
    os.utime(path, ns=(nanos, nanos))
