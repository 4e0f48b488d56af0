"""Run the legacy notification migration against a running server.

Prints the pre-migration analysis, asks for confirmation, then triggers
the migration and prints the report.

Requires a running API server:
    huellitas-server --local --port 8080

Usage:
    python scripts/run_migration.py [--api-url http://localhost:8080/api/v1] [--yes]
"""

import argparse
import sys

import httpx


def main(api_url: str, assume_yes: bool) -> None:
    client = httpx.Client(base_url=api_url, timeout=120.0)

    print(f"Huellitas API: {api_url}")
    print()

    print("1. Analysing existing data...")
    r = client.get("/migration/analysis")
    if r.status_code != 200:
        print(f"   ERROR: {r.status_code} {r.text}", file=sys.stderr)
        sys.exit(1)
    analysis = r.json()
    print(f"   notifications: {analysis['existing_notifications']}")
    print(f"   preferences:   {analysis['existing_preferences']}")
    print(f"   templates:     {analysis['available_templates']}")
    print(f"   users:         {analysis['user_stats']['total_users']}")
    for kind, count in sorted(analysis["notifications_by_type"].items()):
        print(f"     type={kind}: {count}")
    print()

    if not assume_yes:
        answer = input("Run the migration now? [y/N] ").strip().lower()
        if answer not in ("y", "yes", "s", "si"):
            print("Aborted.")
            return

    print("2. Migrating...")
    r = client.post("/migration/run")
    if r.status_code != 200:
        print(f"   ERROR: {r.status_code} {r.text}", file=sys.stderr)
        sys.exit(1)
    report = r.json()
    summary = report["summary"]
    print(f"   success:  {report['success']}")
    print(f"   rows:     {summary['successful']}/{summary['total']} ({summary['success_rate']})")
    for step in report["steps"]:
        status = "ok" if step["ok"] else f"FAILED: {step.get('error')}"
        print(f"   step {step['name']}: {step['count']} ({status})")
    for failed in report["failed_migrations"]:
        print(f"   ! {failed['id']} {failed.get('title') or ''}: {failed['error']}")

    if not report["success"]:
        sys.exit(2)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--api-url", default="http://localhost:8080/api/v1")
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    args = parser.parse_args()
    main(args.api_url, args.yes)
