import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from fakes import FakeS3Client, RecordingAuditSink, RecordingPacing, RecordingWebhookNotifier
from s3_folders import __main__ as cli
from s3_folders.controller import FolderController
from test_controller import FakeProfileStorage, FakeService, sample_profile


class BuildRequestTests(unittest.TestCase):
    def parse(self, *argv):
        return cli.build_parser().parse_args(list(argv))

    def test_move_arguments(self):
        args = self.parse("--profile", "alpha", "move", "bucket-a", "a", "bucket-b", "--to", "b", "--strict")

        request = cli.build_request(args)

        self.assertEqual("move", request.operation)
        self.assertEqual("bucket-a", request.bucket)
        self.assertEqual("a", request.folder_path)
        self.assertEqual("bucket-b", request.destination_bucket)
        self.assertEqual("b", request.destination_path)
        self.assertTrue(args.strict)

    def test_copy_destination_path_is_optional(self):
        request = cli.build_request(self.parse("copy", "bucket-a", "a", "bucket-b"))

        self.assertEqual("copy", request.operation)
        self.assertIsNone(request.destination_path)

    def test_rename_and_delete_arguments(self):
        rename = cli.build_request(self.parse("rename", "bucket-a", "x", "y"))
        delete = cli.build_request(self.parse("delete", "bucket-a", "docs", "--force"))

        self.assertEqual(("x", "y"), (rename.old_path, rename.new_path))
        self.assertEqual("docs", delete.folder_path)
        self.assertTrue(delete.force)

    def test_strict_flag_enables_strict_finalize(self):
        with tempfile.TemporaryDirectory() as tmp:
            args = self.parse(
                "--settings-file",
                str(Path(tmp) / "settings.json"),
                "--profiles-file",
                str(Path(tmp) / "connections.json"),
                "rename",
                "bucket-a",
                "x",
                "y",
                "--strict",
            )

            controller = cli.build_controller(args)

        self.assertTrue(controller._settings.strict_finalize)


class MainTests(unittest.TestCase):
    def run_main(self, argv, controller):
        stdout = io.StringIO()
        stderr = io.StringIO()
        with mock.patch.object(cli, "build_controller", return_value=controller):
            with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
                code = cli.main(argv)
        return code, stdout.getvalue(), stderr.getvalue()

    def make_controller(self, client):
        return FolderController(
            service=FakeService(client),
            storage=FakeProfileStorage([sample_profile()]),
            audit_sink=RecordingAuditSink(),
            webhooks=RecordingWebhookNotifier(),
            pacing=RecordingPacing(),
            user="ana@example.com",
        )

    def test_create_prints_response_body(self):
        client = FakeS3Client(buckets=["bucket-one"])

        code, out, _ = self.run_main(["--profile", "alpha", "create", "bucket-one", "docs"], self.make_controller(client))

        self.assertEqual(0, code)
        self.assertEqual({"success": True, "folderPath": "docs/"}, json.loads(out))
        self.assertEqual(["docs/.keep"], client.keys("bucket-one"))

    def test_validation_failure_exits_non_zero(self):
        client = FakeS3Client(buckets=["bucket-one"])

        code, out, _ = self.run_main(["--profile", "alpha", "create", "bucket-one", "bad name"], self.make_controller(client))

        self.assertEqual(1, code)
        self.assertIn("error", json.loads(out))

    def test_folder_operations_need_a_profile(self):
        code, _, err = self.run_main(["create", "bucket-one", "docs"], self.make_controller(FakeS3Client()))

        self.assertEqual(2, code)
        self.assertIn("--profile", err)

    def test_unknown_profile(self):
        code, _, err = self.run_main(
            ["--profile", "missing", "create", "bucket-one", "docs"], self.make_controller(FakeS3Client())
        )

        self.assertEqual(2, code)
        self.assertIn("missing", err)

    def test_profiles_list(self):
        code, out, _ = self.run_main(["profiles", "list"], self.make_controller(FakeS3Client()))

        self.assertEqual(0, code)
        self.assertIn("alpha\thttps://account.r2.cloudflarestorage.com\tauto", out)

    def test_profiles_add_prompts_for_secret(self):
        controller = self.make_controller(FakeS3Client())

        with mock.patch.object(cli.getpass, "getpass", return_value="typed-secret"):
            code, _, _ = self.run_main(
                ["profiles", "add", "beta", "--endpoint-url", "https://two", "--access-key", "b"], controller
            )

        self.assertEqual(0, code)
        self.assertEqual("typed-secret", controller.get_profile("beta").secret_key)

    def test_profiles_remove_missing(self):
        code, _, err = self.run_main(["profiles", "remove", "ghost"], self.make_controller(FakeS3Client()))

        self.assertEqual(1, code)
        self.assertIn("ghost", err)


if __name__ == "__main__":
    unittest.main()
