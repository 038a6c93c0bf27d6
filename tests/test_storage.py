"""Tests for the blob storage adapters and config selection."""
from pathlib import Path

import pytest

from app.crm.storage import LocalStorage, S3Storage, StorageError, buckets_from_config, storage_from_config


def test_local_put_and_get(tmp_path):
    st = LocalStorage(root=tmp_path)
    st.put_object("customer", "profile-images/1/a.png", b"abc")
    assert (tmp_path / "customer" / "profile-images" / "1" / "a.png").read_bytes() == b"abc"
    assert st.get_object("customer", "profile-images/1/a.png") == b"abc"


def test_local_buckets_are_isolated(tmp_path):
    st = LocalStorage(root=tmp_path)
    st.put_object("one", "k", b"1")
    with pytest.raises(StorageError):
        st.get_object("two", "k")


def test_local_missing_key(tmp_path):
    with pytest.raises(StorageError):
        LocalStorage(root=tmp_path).get_object("customer", "nope")


def test_local_rejects_traversal(tmp_path):
    st = LocalStorage(root=tmp_path / "root")
    with pytest.raises(StorageError):
        st.put_object("customer", "../../escape.txt", b"x")


def test_storage_from_config_local_default(tmp_path):
    st = storage_from_config({"STORAGE_BACKEND": "local", "STORAGE_LOCAL_ROOT": str(tmp_path)})
    assert isinstance(st, LocalStorage)
    assert st.root == Path(str(tmp_path))


def test_storage_from_config_s3():
    st = storage_from_config(
        {
            "STORAGE_BACKEND": "s3",
            "S3_ENDPOINT": "s3.example.com",
            "S3_REGION": "eu-west-1",
            "S3_ACCESS_KEY_ID": "id",
            "S3_SECRET_ACCESS_KEY": "secret",
        }
    )
    assert isinstance(st, S3Storage)
    assert st.region == "eu-west-1"


def test_buckets_from_config():
    assert buckets_from_config({"S3_BUCKET_CUSTOMER": " avatars "}).customer == "avatars"
    assert buckets_from_config({}).customer == "customer"


def test_local_rejects_relative_segments_inside_bucket(tmp_path):
    st = LocalStorage(root=tmp_path)
    st.put_object("customer", "profile-images/7/me.png", b"seven")
    with pytest.raises(StorageError):
        st.get_object("customer", "profile-images/5/../7/me.png")
    with pytest.raises(StorageError):
        st.put_object("customer", "profile-images/5/../7/me.png", b"evil")
    with pytest.raises(StorageError):
        st.put_object("customer", "profile-images/5/./me.png", b"x")
    assert st.get_object("customer", "profile-images/7/me.png") == b"seven"


def test_local_rejects_directory_keys(tmp_path):
    st = LocalStorage(root=tmp_path)
    with pytest.raises(StorageError):
        st.put_object("customer", "profile-images/5/", b"x")
    with pytest.raises(StorageError):
        st.put_object("customer", "", b"x")
