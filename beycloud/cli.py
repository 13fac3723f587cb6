# beycloud/cli.py
"""
CLI for the configured storage backend.

Usage:
    python -m beycloud.cli exists reports/q1.pdf
    python -m beycloud.cli upload reports/q1.pdf ./q1.pdf --content-type application/pdf
    python -m beycloud.cli download reports/q1.pdf ./q1-copy.pdf
    python -m beycloud.cli get reports/q1.pdf
    python -m beycloud.cli list --prefix reports/ --max-keys 50
    python -m beycloud.cli sign reports/q1.pdf --expires-in 600
    python -m beycloud.cli delete reports/q1.pdf

The backend is selected by STORAGE_PROVIDER and its variables (see
beycloud.config.Settings).
"""

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from beycloud.config import get_settings
from beycloud.logging_config import configure_logging
from beycloud.storage import CloudStorage, StorageError, get_storage_provider

load_dotenv()


async def cmd_exists(storage: CloudStorage, args) -> None:
    """Print whether the key exists."""
    print("yes" if await storage.exists(args.key) else "no")


async def cmd_upload(storage: CloudStorage, args) -> None:
    """Upload a local file, streamed from disk."""
    content_type = args.content_type or mimetypes.guess_type(args.path)[0]
    with open(args.path, "rb") as f:
        url = await storage.upload_file(args.key, f, content_type)
    print(url)


async def cmd_download(storage: CloudStorage, args) -> None:
    data = await storage.download_file(args.key)
    Path(args.path).write_bytes(data)
    print(f"Wrote {len(data)} bytes to {args.path}")


async def cmd_delete(storage: CloudStorage, args) -> None:
    await storage.delete_file(args.key)
    print(f"Deleted {args.key}")


async def cmd_get(storage: CloudStorage, args) -> None:
    """Show metadata for one object."""
    info = await storage.get_file(args.key)
    print(f"Key: {info.key}")
    print(f"  Size: {info.size} bytes")
    print(f"  Last modified: {info.last_modified.isoformat() if info.last_modified else '-'}")
    print(f"  Content type: {info.content_type or '-'}")
    print(f"  URL: {info.url}")


async def cmd_list(storage: CloudStorage, args) -> None:
    """List objects, one per line."""
    files = await storage.get_files_list(max_keys=args.max_keys, prefix=args.prefix)
    for info in files:
        modified = info.last_modified.isoformat() if info.last_modified else "-"
        print(f"{info.size:>12}  {modified}  {info.key}")
    print(f"\n{len(files)} object(s)")


async def cmd_sign(storage: CloudStorage, args) -> None:
    print(await storage.get_signed_url(args.key, expires_in=args.expires_in))


COMMANDS = {
    "exists": cmd_exists,
    "upload": cmd_upload,
    "download": cmd_download,
    "delete": cmd_delete,
    "get": cmd_get,
    "list": cmd_list,
    "sign": cmd_sign,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Object storage operations against the configured backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    exists_parser = subparsers.add_parser("exists", help="Check whether a key exists")
    exists_parser.add_argument("key")

    upload_parser = subparsers.add_parser("upload", help="Upload a local file")
    upload_parser.add_argument("key")
    upload_parser.add_argument("path", help="Local file to upload")
    upload_parser.add_argument("--content-type", default=None, help="MIME type (guessed from path if omitted)")

    download_parser = subparsers.add_parser("download", help="Download an object to a local file")
    download_parser.add_argument("key")
    download_parser.add_argument("path", help="Destination file")

    delete_parser = subparsers.add_parser("delete", help="Delete an object")
    delete_parser.add_argument("key")

    get_parser = subparsers.add_parser("get", help="Show object metadata")
    get_parser.add_argument("key")

    list_parser = subparsers.add_parser("list", help="List objects")
    list_parser.add_argument("--prefix", default=None, help="Only keys starting with this prefix")
    list_parser.add_argument("--max-keys", type=int, default=1000, help="Maximum entries (default: 1000)")

    sign_parser = subparsers.add_parser("sign", help="Generate a signed read URL")
    sign_parser.add_argument("key")
    sign_parser.add_argument("--expires-in", type=int, default=3600, help="Validity in seconds (default: 3600)")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        settings = get_settings()
        configure_logging(json_format=settings.LOG_JSON, level=settings.LOG_LEVEL)
        storage = get_storage_provider()
        asyncio.run(COMMANDS[args.command](storage, args))
    except (ValidationError, StorageError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
