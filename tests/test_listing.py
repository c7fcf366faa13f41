import unittest

from fakes import FakeS3Client, client_error
from s3_folders.errors import RemoteListError, SubsequentListError
from s3_folders.listing import MAX_PAGE_SIZE, PrefixLister
from s3_folders.models import ListingPage
from s3_folders.services import S3ObjectStore


def make_lister(client):
    return PrefixLister(S3ObjectStore(client))


class PrefixListerTests(unittest.TestCase):
    def test_list_returns_a_single_page(self):
        client = FakeS3Client({"bucket-one": {"a/1.txt": "one", "a/2.txt": "two", "b/3.txt": "three"}})

        page = make_lister(client).list("bucket-one", "a/")

        self.assertEqual(["a/1.txt", "a/2.txt"], page.keys)
        self.assertFalse(page.is_truncated)
        self.assertIsNone(page.cursor)
        self.assertEqual(3, page.objects[0].size)
        self.assertEqual("a/", client.list_calls[0]["Prefix"])

    def test_page_size_is_clamped(self):
        client = FakeS3Client({"bucket-one": {}})
        lister = make_lister(client)

        lister.list("bucket-one", "a/", page_size=5000)
        lister.list("bucket-one", "a/", page_size=0)

        self.assertEqual([MAX_PAGE_SIZE, 1], [call["MaxKeys"] for call in client.list_calls])

    def test_iter_pages_follows_the_cursor(self):
        objects = {f"a/{index}.txt": "x" for index in range(5)}
        client = FakeS3Client({"bucket-one": objects})
        waits = []

        pages = list(
            make_lister(client).iter_pages(
                "bucket-one", "a/", page_size=2, between_pages=lambda: waits.append(1)
            )
        )

        self.assertEqual(
            [["a/0.txt", "a/1.txt"], ["a/2.txt", "a/3.txt"], ["a/4.txt"]],
            [page.keys for page in pages],
        )
        self.assertEqual(2, len(waits))
        self.assertEqual(
            [None, "after:a/1.txt", "after:a/3.txt"],
            [call.get("ContinuationToken") for call in client.list_calls],
        )

    def test_iter_pages_yields_nothing_for_an_empty_prefix(self):
        client = FakeS3Client({"bucket-one": {"b/1.txt": "one"}})

        self.assertEqual([], list(make_lister(client).iter_pages("bucket-one", "a/")))

    def test_first_page_failure_is_a_plain_list_error(self):
        client = FakeS3Client(
            {"bucket-one": {"a/1.txt": "one"}},
            list_errors={1: client_error("AccessDenied", "ListObjectsV2")},
        )

        with self.assertRaises(RemoteListError) as ctx:
            list(make_lister(client).iter_pages("bucket-one", "a/"))

        self.assertNotIsInstance(ctx.exception, SubsequentListError)

    def test_later_page_failure_is_reported_separately(self):
        client = FakeS3Client(
            {"bucket-one": {"a/1.txt": "one", "a/2.txt": "two", "a/3.txt": "three"}},
            list_errors={2: client_error("InternalError", "ListObjectsV2")},
        )
        received = []

        with self.assertRaises(SubsequentListError):
            for page in make_lister(client).iter_pages("bucket-one", "a/", page_size=2):
                received.append(page.keys)

        self.assertEqual([["a/1.txt", "a/2.txt"]], received)

    def test_truncated_page_without_cursor_has_no_more(self):
        self.assertFalse(ListingPage(is_truncated=True).has_more)
        self.assertTrue(ListingPage(is_truncated=True, cursor="token").has_more)


if __name__ == "__main__":
    unittest.main()
