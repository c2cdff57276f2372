#!/usr/bin/env python
"""Management entry point for the ward monitoring backend (migrate, ensure_users, populate_ward...)."""
import os
import sys


def main() -> None:
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'wardmonitor.settings')
    from django.core.management import execute_from_command_line  # type: ignore

    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
