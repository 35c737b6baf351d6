"""Report, and optionally delete, duplicate recurring task instances.

Usage: python -m tasktide.db.dedupe_instances [--apply]
"""
import argparse

from tasktide.db.session import SessionLocal
from tasktide.repositories.templates import TemplateStore
from tasktide.services.duplicates import find_duplicate_instances, remove_duplicate_instances


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--apply", action="store_true", help="delete the duplicates that were found")
    args = parser.parse_args(argv)

    store = TemplateStore(SessionLocal)
    groups = find_duplicate_instances(store)
    if not groups:
        print("No duplicate instances found.")
        return 0

    for group in groups:
        print(
            f"Task {group.template_id}: '{group.title}' kept {group.keep_id}, "
            f"duplicates {group.duplicate_ids}"
        )

    if not args.apply:
        print("Run again with --apply to delete them.")
        return 0

    report = remove_duplicate_instances(store)
    print(f"Removed {report.total_removed} duplicate instance(s).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
