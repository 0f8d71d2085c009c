from conftest import BUCKET
from s3wrapper.bucket import ALL_USERS_URI
from s3wrapper.bucket import bucket_exists
from s3wrapper.bucket import create_bucket
from s3wrapper.bucket import is_bucket_public
from s3wrapper.bucket import is_object_public
from s3wrapper.bucket import is_public
from s3wrapper.exceptions import BucketAlreadyExistsError
from s3wrapper.exceptions import PreconditionError
from s3wrapper.uri import S3URI

import pytest


def _grant(uri, permission):
    return {"Grantee": {"Type": "Group", "URI": uri}, "Permission": permission}


class TestIsPublic:
    def test_all_users_read(self):
        assert is_public({"Grants": [_grant(ALL_USERS_URI, "READ")]})

    def test_all_users_full_control(self):
        assert is_public({"Grants": [_grant(ALL_USERS_URI, "FULL_CONTROL")]})

    def test_all_users_write_only(self):
        assert not is_public({"Grants": [_grant(ALL_USERS_URI, "WRITE")]})

    def test_other_group(self):
        authenticated = "http://acs.amazonaws.com/groups/global/AuthenticatedUsers"
        assert not is_public({"Grants": [_grant(authenticated, "READ")]})

    def test_owner_only(self):
        acl = {
            "Grants": [
                {
                    "Grantee": {"Type": "CanonicalUser", "ID": "abc"},
                    "Permission": "FULL_CONTROL",
                }
            ]
        }
        assert not is_public(acl)

    def test_empty(self):
        assert not is_public(None)
        assert not is_public({})


class TestBuckets:
    def test_exists(self, client):
        assert bucket_exists(client, BUCKET)
        assert not bucket_exists(client, "no-such-bucket")

    def test_create(self, client):
        create_bucket(client, "  new-bucket ")
        assert bucket_exists(client, "new-bucket")

    def test_create_existing(self, client):
        with pytest.raises(BucketAlreadyExistsError):
            create_bucket(client, BUCKET)

    def test_already_exists_is_a_precondition(self):
        assert issubclass(BucketAlreadyExistsError, PreconditionError)

    def test_create_empty_name(self, client):
        with pytest.raises(ValueError):
            create_bucket(client, "   ")

    def test_private_bucket(self, client):
        assert not is_bucket_public(client, BUCKET)

    def test_missing_bucket_is_not_public(self, client):
        assert not is_bucket_public(client, "no-such-bucket")
        assert not is_bucket_public(client, "")


class AclClient:
    def __init__(self, acl):
        self.acl = acl
        self.requests = []

    def get_object_acl(self, bucket, key):
        self.requests.append((bucket, key))
        return self.acl

    def reconnect(self):
        pass


class TestObjectAcl:
    def test_public_object(self):
        client = AclClient({"Grants": [_grant(ALL_USERS_URI, "READ")]})
        assert is_object_public(client, S3URI(BUCKET, "img/white.jpg"))
        assert client.requests == [(BUCKET, "img/white.jpg")]

    def test_private_object(self):
        assert not is_object_public(AclClient({"Grants": []}), S3URI(BUCKET, "a"))
