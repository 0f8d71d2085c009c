from botocore.exceptions import ClientError
from conftest import BUCKET
from s3wrapper.exceptions import S3NotFoundError
from s3wrapper.exceptions import S3OperationError
from s3wrapper.interfaces import IS3Client
from s3wrapper.s3client import S3Client

import pytest


class TestS3ClientInterface:
    def test_interface_provided(self, client):
        assert IS3Client.providedBy(client)


class TestConnection:
    def test_client_is_lazy(self, s3_env):
        s3_client = S3Client(region_name="us-east-1")
        assert s3_client._client is None
        assert s3_client.s3 is s3_client.s3

    def test_reconnect_builds_a_new_client(self, client):
        before = client.s3
        client.reconnect()
        assert client._client is None
        after = client.s3
        assert after is not before
        assert client.bucket_exists(BUCKET)

    def test_reconnect_is_idempotent(self, client):
        client.reconnect()
        client.reconnect()
        assert client.bucket_exists(BUCKET)

    def test_context_manager_closes(self, s3_env):
        with S3Client(region_name="us-east-1") as s3_client:
            s3_client.bucket_exists(BUCKET)
        assert s3_client._client is None


class TestPutGet:
    def test_put_and_get_roundtrip(self, client):
        client.put_object(BUCKET, "test/key.blob", b"hello blob data")
        response = client.get_object(BUCKET, "test/key.blob")
        assert response["Body"].read() == b"hello blob data"

    def test_user_metadata(self, client):
        client.put_object(BUCKET, "meta.txt", b"x", metadata={"lastmodified": "1234"})
        assert client.head_object(BUCKET, "meta.txt")["Metadata"] == {
            "lastmodified": "1234"
        }

    def test_get_missing_raises_not_found(self, client):
        with pytest.raises(S3NotFoundError):
            client.get_object(BUCKET, "missing/key.blob")

    def test_get_missing_bucket_raises_not_found(self, client):
        with pytest.raises(S3NotFoundError):
            client.get_object("no-such-bucket", "key")


class TestDeleteObject:
    def test_delete_object(self, client):
        client.put_object(BUCKET, "del/key.blob", b"delete me")
        assert client.head_object(BUCKET, "del/key.blob") is not None
        client.delete_object(BUCKET, "del/key.blob")
        assert client.head_object(BUCKET, "del/key.blob") is None

    def test_delete_nonexistent_does_not_raise(self, client):
        client.delete_object(BUCKET, "nonexistent/key.blob")


class TestHeadObject:
    def test_head_object_exists(self, client):
        client.put_object(BUCKET, "head/key.blob", b"head test")
        result = client.head_object(BUCKET, "head/key.blob")
        assert result["ContentLength"] == 9

    def test_head_object_missing(self, client):
        assert client.head_object(BUCKET, "missing/key.blob") is None


class TestListObjects:
    def test_single_page(self, client, bucket_files):
        page = client.list_objects(BUCKET, "bin/")
        keys = {obj["Key"] for obj in page["Contents"]}
        assert keys == {"bin/random_100.bin", "bin/random_1024.bin", "bin/zero_100.bin"}
        assert not page["IsTruncated"]

    def test_delimiter(self, client, bucket_files):
        page = client.list_objects(BUCKET, "", delimiter="/")
        assert [obj["Key"] for obj in page["Contents"]] == ["root.txt"]
        assert {p["Prefix"] for p in page["CommonPrefixes"]} == {"bin/", "img/"}

    def test_continuation(self, client, bucket_files):
        page = client.list_objects(BUCKET, "", max_keys=4)
        assert page["IsTruncated"]
        rest = client.list_objects(
            BUCKET, "", continuation_token=page["NextContinuationToken"]
        )
        keys = [obj["Key"] for obj in page["Contents"] + rest["Contents"]]
        assert sorted(keys) == sorted(bucket_files)

    def test_missing_bucket(self, client):
        with pytest.raises(S3NotFoundError):
            client.list_objects("no-such-bucket", "")


class TestBuckets:
    def test_bucket_exists(self, client):
        assert client.bucket_exists(BUCKET)
        assert not client.bucket_exists("no-such-bucket")

    def test_create_bucket(self, client):
        client.create_bucket("another-bucket")
        assert client.bucket_exists("another-bucket")

    def test_get_bucket_acl(self, client):
        acl = client.get_bucket_acl(BUCKET)
        assert "Grants" in acl


class FailingBotoClient:
    """Stands in for the boto3 client, failing every call with ``code``."""

    def __init__(self, code):
        self.code = code

    def _fail(self, **kwargs):
        raise ClientError({"Error": {"Code": self.code, "Message": "nope"}}, "Op")

    head_object = get_object = list_objects_v2 = head_bucket = _fail

    def close(self):
        pass


class TestErrorWrapping:
    def test_operation_error_keeps_cause(self):
        s3_client = S3Client(region_name="us-east-1")
        s3_client._client = FailingBotoClient("AccessDenied")
        with pytest.raises(S3OperationError) as excinfo:
            s3_client.get_object(BUCKET, "key")
        assert isinstance(excinfo.value.__cause__, ClientError)
        assert "AccessDenied" in str(excinfo.value)

    def test_head_access_denied_is_not_none(self):
        s3_client = S3Client(region_name="us-east-1")
        s3_client._client = FailingBotoClient("AccessDenied")
        with pytest.raises(S3OperationError):
            s3_client.head_object(BUCKET, "key")

    @pytest.mark.parametrize("code", ["404", "NoSuchKey", "NoSuchBucket", "NotFound"])
    def test_not_found_codes(self, code):
        s3_client = S3Client(region_name="us-east-1")
        s3_client._client = FailingBotoClient(code)
        with pytest.raises(S3NotFoundError):
            s3_client.get_object(BUCKET, "key")
        assert s3_client.head_object(BUCKET, "key") is None
        assert not s3_client.bucket_exists(BUCKET)

    def test_reconnect_replaces_failing_client(self, s3_env):
        s3_client = S3Client(region_name="us-east-1")
        s3_client._client = FailingBotoClient("InternalError")
        with pytest.raises(S3OperationError):
            s3_client.bucket_exists(BUCKET)
        s3_client.reconnect()
        assert s3_client.bucket_exists(BUCKET)
