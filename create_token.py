"""Print a bearer token for an existing employee.

Useful for manual API calls without going through ``/login``.  Uses the
same ``JWT_SECRET`` and ``JWT_TTL`` as the server.

Usage:
    JWT_SECRET=... python create_token.py --employee-id 1 [--ttl 1h]
"""
import argparse
import sys

from crm_api.app.core.config import Settings, parse_ttl
from crm_api.app.core.db import init_db
from crm_api.app.core.security import create_access_token
from crm_api.app.services import EmployeeService


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Issue a bearer token for an employee.")
    ap.add_argument("--employee-id", type=int, required=True, help="Employee id to embed in the token")
    ap.add_argument("--ttl", help="Token lifetime, e.g. 3600, 15m, 1h (defaults to JWT_TTL)")
    args = ap.parse_args(argv)

    settings = Settings.from_env()
    if not settings.jwt_secret:
        print("[!] JWT_SECRET is not set; refusing to issue a token.", file=sys.stderr)
        return 1
    init_db(settings)
    employee = EmployeeService(settings).get_employee(args.employee_id)
    if employee is None:
        print(f"[!] Employee {args.employee_id} not found", file=sys.stderr)
        return 1
    ttl = parse_ttl(args.ttl) if args.ttl else settings.token_ttl_seconds
    print(create_access_token({"id": employee.id}, settings.jwt_secret, ttl))
    return 0


if __name__ == "__main__":
    sys.exit(main())
