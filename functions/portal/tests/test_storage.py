import unittest
from unittest import mock

from portal.storage import InMemoryStorageClient, S3StorageClient


class InMemoryStorageClientTests(unittest.TestCase):
    def test_upload_list_and_delete(self):
        storage = InMemoryStorageClient()
        storage.upload_bytes("courses/c1/files/a.pdf", b"pdf", "application/pdf")
        storage.upload_bytes("courses/c2/files/b.txt", b"txt")

        self.assertEqual(storage.list_paths("courses/c1/"), ["courses/c1/files/a.pdf"])
        self.assertEqual(storage.content_types["courses/c2/files/b.txt"], "application/octet-stream")
        self.assertIn("expires=30", storage.signed_url("courses/c1/files/a.pdf", 30))

        storage.delete("courses/c1/files/a.pdf")
        with self.assertRaises(FileNotFoundError):
            storage.delete("courses/c1/files/a.pdf")


class S3StorageClientTests(unittest.TestCase):
    def setUp(self):
        patcher = mock.patch("portal.storage.boto3.client")
        self.boto_client = patcher.start()
        self.addCleanup(patcher.stop)
        self.s3 = self.boto_client.return_value
        self.storage = S3StorageClient(bucket="course-files", region="me-west-1")

    def test_client_uses_sigv4_and_default_credentials(self):
        kwargs = self.boto_client.call_args.kwargs
        self.assertEqual(kwargs["region_name"], "me-west-1")
        self.assertIsNone(kwargs["endpoint_url"])
        self.assertIsNone(kwargs["aws_access_key_id"])
        self.assertEqual(kwargs["config"].signature_version, "s3v4")

    def test_upload_defaults_content_type(self):
        self.storage.upload_bytes("courses/c1/files/a.bin", b"x")
        self.s3.put_object.assert_called_once_with(
            Bucket="course-files",
            Key="courses/c1/files/a.bin",
            Body=b"x",
            ContentType="application/octet-stream",
        )

    def test_signed_url(self):
        self.s3.generate_presigned_url.return_value = "https://signed"
        self.assertEqual(self.storage.signed_url("courses/c1/files/a.pdf", 120), "https://signed")
        self.s3.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={"Bucket": "course-files", "Key": "courses/c1/files/a.pdf"},
            ExpiresIn=120,
        )

    def test_list_paths_walks_every_page(self):
        self.s3.get_paginator.return_value.paginate.return_value = [
            {"Contents": [{"Key": "courses/c1/files/a.pdf"}]},
            {},
            {"Contents": [{"Key": "courses/c1/files/b.pdf"}]},
        ]
        self.assertEqual(
            self.storage.list_paths("courses/c1/"),
            ["courses/c1/files/a.pdf", "courses/c1/files/b.pdf"],
        )
        self.s3.get_paginator.assert_called_once_with("list_objects_v2")


if __name__ == "__main__":
    unittest.main()
