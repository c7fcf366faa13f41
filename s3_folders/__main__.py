"""Command-line entry point for folder operations."""
import argparse
from dataclasses import replace
import getpass
import json
import logging
import os
import sys

from botocore.exceptions import BotoCoreError, ClientError

from .controller import FolderController, FolderRequest
from .profiles import ConnectionProfile, ProfileStorage
from .services import DEFAULT_REGION
from .settings import SettingsStorage


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pys3folders",
        description="Create, rename, copy, move and delete folders in S3-compatible buckets.",
    )
    parser.add_argument("--profile", help="saved connection profile to use")
    parser.add_argument("--profiles-file", help="path of the connection profiles file")
    parser.add_argument("--settings-file", help="path of the settings file")
    parser.add_argument("--user", default=os.environ.get("USER", ""), help="identity recorded in the audit log")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    commands = parser.add_subparsers(dest="command", required=True)

    profiles = commands.add_parser("profiles", help="manage saved connections")
    profile_commands = profiles.add_subparsers(dest="profile_command", required=True)
    profile_commands.add_parser("list", help="show saved connections")
    add = profile_commands.add_parser("add", help="save or update a connection")
    add.add_argument("name")
    add.add_argument("--endpoint-url", required=True)
    add.add_argument("--access-key", required=True)
    add.add_argument("--region", default=DEFAULT_REGION)
    remove = profile_commands.add_parser("remove", help="forget a connection")
    remove.add_argument("name")

    create = commands.add_parser("create", help="create an empty folder")
    create.add_argument("bucket")
    create.add_argument("folder")

    rename = commands.add_parser("rename", help="rename a folder within its bucket")
    rename.add_argument("bucket")
    rename.add_argument("old_path")
    rename.add_argument("new_path")
    rename.add_argument("--strict", action="store_true", help="keep source objects that failed to copy")

    for name, help_text in (("copy", "copy a folder"), ("move", "move a folder")):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("bucket")
        sub.add_argument("folder")
        sub.add_argument("destination_bucket")
        sub.add_argument("--to", dest="destination_path", help="destination folder (defaults to the source path)")
        if name == "move":
            sub.add_argument("--strict", action="store_true", help="keep source objects that failed to copy")

    delete = commands.add_parser("delete", help="delete a folder and its contents")
    delete.add_argument("bucket")
    delete.add_argument("folder")
    delete.add_argument("--force", action="store_true", help="delete even when the folder is not empty")
    return parser


def build_request(args: argparse.Namespace) -> FolderRequest:
    if args.command == "create":
        return FolderRequest("create", args.bucket, folder_name=args.folder)
    if args.command == "rename":
        return FolderRequest("rename", args.bucket, old_path=args.old_path, new_path=args.new_path)
    if args.command in ("copy", "move"):
        return FolderRequest(
            args.command,
            args.bucket,
            folder_path=args.folder,
            destination_bucket=args.destination_bucket,
            destination_path=args.destination_path,
        )
    return FolderRequest("delete", args.bucket, folder_path=args.folder, force=args.force)


def build_controller(args: argparse.Namespace) -> FolderController:
    settings = SettingsStorage(args.settings_file).load()
    if getattr(args, "strict", False):
        settings = replace(settings, strict_finalize=True)
    return FolderController(
        storage=ProfileStorage(args.profiles_file),
        settings=settings,
        user=args.user,
    )


def _run_profiles(controller: FolderController, args: argparse.Namespace) -> int:
    if args.profile_command == "list":
        for profile in controller.list_profiles():
            print(f"{profile.name}\t{profile.endpoint_url}\t{profile.region_name}")
        return 0
    if args.profile_command == "add":
        secret_key = getpass.getpass("Secret key: ")
        controller.save_profile(
            ConnectionProfile(
                name=args.name,
                endpoint_url=args.endpoint_url,
                access_key=args.access_key,
                secret_key=secret_key,
                region_name=args.region,
            )
        )
        return 0
    try:
        controller.delete_profile(args.name)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    controller = build_controller(args)
    if args.command == "profiles":
        return _run_profiles(controller, args)

    if not args.profile:
        print("--profile is required for folder operations", file=sys.stderr)
        return 2
    try:
        controller.connect_with_profile(args.profile)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    except (ClientError, BotoCoreError) as exc:
        print(f"Could not connect: {exc}", file=sys.stderr)
        return 1

    response = controller.handle(build_request(args))
    print(json.dumps(response.body, indent=2))
    return 0 if response.ok else 1


if __name__ == "__main__":
    sys.exit(main())
