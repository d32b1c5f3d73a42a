#!/usr/bin/env python3
"""Refresh the apm_8.0.0 fixture archive used by the APM API integration tests.

Run from the repository root:

    python scripts/create_functional_tests_archive.py --es-url=http://localhost:9200 --kibana-url=http://localhost:5601
"""

import sys

from apm_fixture_archive.cli import main


if __name__ == "__main__":
    raise SystemExit(main(["create", *sys.argv[1:]]))
