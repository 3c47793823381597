#!/usr/bin/env python3
"""nexparse-data: inspect and override the bundled datatype tables"""

import argparse
import sys

from .config import DataManager, get_data_manager
from .core.models import DataType
from .utils.datatypes import DataTypeDefaults


def _info(dm: DataManager, args) -> int:
    info = dm.get_data_info()
    print(f"Package data: {info['package_data_dir']}")
    print(f"User data:    {info['user_data_dir']}")

    print("\nData files:")
    for name in info["package_files"]:
        marker = " (overridden)" if name in info["user_files"] else ""
        print(f"  {name}{marker}")
    for name in info["user_files"]:
        if name not in info["package_files"]:
            print(f"  {name} (user only, not read)")

    print("\nRun 'nexparse-data copy <file>' to start editing a file")
    return 0


def _reset(dm: DataManager, args) -> int:
    if not (args.file or args.all):
        print("Give --file <name> or --all")
        return 1
    removed = dm.reset_to_defaults(args.file if args.file else None)
    print(f"Removed {removed} user file(s)")
    return 0


def _path(dm: DataManager, args) -> int:
    print(dm.user_data_dir)
    return 0


def _copy(dm: DataManager, args) -> int:
    if not dm.copy_package_to_user(args.file):
        return 1
    print(f"Edit {dm.user_data_dir / args.file}")
    return 0


def _show(dm: DataManager, args) -> int:
    """Print the symbols and equates each DATATYPE starts from"""
    defaults = DataTypeDefaults()
    datatypes = [DataType(args.datatype)] if args.datatype else list(DataType)
    for datatype in datatypes:
        symbols = defaults.symbols(datatype)
        print(f'{datatype.value.upper()}: symbols "{symbols}"')
        for key, value in sorted(defaults.equates(datatype).items()):
            print(f"  {key} = {value}")
    return 0


COMMANDS = {
    "info": _info,
    "reset": _reset,
    "path": _path,
    "copy": _copy,
    "show": _show,
}


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="nexparse-data", description="Inspect and override nexparse data files"
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("info", help="List data directories and files")
    subparsers.add_parser("path", help="Print the user data directory")

    reset_parser = subparsers.add_parser("reset", help="Remove user copies of data files")
    reset_parser.add_argument("--file", help="Reset one file, e.g. datatypes.yaml")
    reset_parser.add_argument("--all", action="store_true", help="Reset every user file")

    copy_parser = subparsers.add_parser("copy", help="Copy a packaged file to the user directory")
    copy_parser.add_argument("file", help="File name, e.g. datatypes.yaml")

    show_parser = subparsers.add_parser("show", help="Print the datatype tables in effect")
    show_parser.add_argument(
        "--datatype", choices=[d.value for d in DataType], help="Only this datatype"
    )

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    return COMMANDS[args.command](get_data_manager(), args)


if __name__ == "__main__":
    sys.exit(main())
