"""
Entry point for the Google+ (F+MG+E) to forum import.

Every positional argument is a file name; its role follows from the name
(see :mod:`gplus_import.extractors.fmgp_extractor`)::

    python main.py community1.json community2.json \
        google-plus-image-list.csv categories.json upload-paths.txt --dry-run

Create an initial empty (``{}``) categories.json; the first run writes
``categories.json.new`` to fill in and rename before running the same import
again.
"""

import argparse
import sys

import requests

from gplus_import.extractors.fmgp_extractor import DRY_RUN_FLAG, classify_inputs
from gplus_import.migration_tool import GPlusMigrationTool
from gplus_import.utils.errors import GPlusImportError, error_code_for, report_error
from gplus_import.utils.pre_flight_checks import run_forum_pre_flight_checks

CONFIG_FILE = "config/import_config.json"


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import Friends+Me Google+ Exporter output into a forum.")
    parser.add_argument(
        "files",
        nargs="+",
        help="F+MG+E .json exports, the image list .csv, categories.json and optionally *upload-paths.txt",
    )
    parser.add_argument(DRY_RUN_FLAG, dest="dry_run", action="store_true", help="Parse and validate only; create nothing")
    parser.add_argument("--config", default=CONFIG_FILE, help="Path of the JSON configuration file")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Main function to run the Google+ import.
    """
    args = parse_args(argv)
    tool = GPlusMigrationTool(config_file=args.config)

    try:
        inputs = classify_inputs(args.files)
        inputs.dry_run = inputs.dry_run or args.dry_run
        tool.load_inputs(inputs)
        if not tool.dry_run:
            run_forum_pre_flight_checks(tool.config)
        tool.run()
    except (GPlusImportError, requests.RequestException) as e:
        tool.log_message(str(e), level="ERROR")
        report_error(error_code_for(e), exc=e, report_dir=tool.events_dir)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
