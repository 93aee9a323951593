# scripts/seed_assemblies.py
"""
Register (or update) district assemblies straight into the database.

  python -m scripts.seed_assemblies --file assemblies.json
  python -m scripts.seed_assemblies --name "Bethel" --pastor "Pst. Ade" --members 120
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from app.admin.service import save_assembly
from app.db import SessionLocal, init_db
from app.schemas import AssemblyIn

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
log = logging.getLogger("seed_assemblies")


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Register district assemblies.")
    p.add_argument("--file", type=Path, help="JSON file holding a list of assemblies")
    p.add_argument("--name", help="Single assembly name")
    p.add_argument("--pastor")
    p.add_argument("--location")
    p.add_argument("--members", type=int, default=0)
    p.add_argument("--status", choices=["active", "inactive"], default="active")
    p.add_argument("--established", help="ISO date, e.g. 1998-05-01")
    return p.parse_args(argv)


def load_rows(args: argparse.Namespace) -> list:
    rows = []
    if args.file:
        data = json.loads(args.file.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise SystemExit(f"{args.file}: expected a JSON list of assemblies")
        rows.extend(data)
    if args.name:
        rows.append({
            "name": args.name,
            "pastor": args.pastor,
            "location": args.location,
            "members": args.members,
            "status": args.status,
            "established": args.established,
        })
    if not rows:
        raise SystemExit("Nothing to seed: pass --file or --name")
    return rows


def main(argv=None) -> int:
    args = parse_args(argv)
    rows = load_rows(args)
    init_db()

    created = updated = failed = 0
    db = SessionLocal()
    try:
        for raw in rows:
            try:
                payload = AssemblyIn.model_validate(raw)
            except ValidationError as e:
                failed += 1
                log.warning("Skipping %r: %s", raw.get("name") if isinstance(raw, dict) else raw, e)
                continue
            res = save_assembly(db, payload)
            if res["created"]:
                created += 1
            else:
                updated += 1
    finally:
        db.close()

    log.info("Seed complete. created=%s updated=%s skipped=%s", created, updated, failed)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
