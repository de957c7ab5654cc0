"""Print a bearer token for an actor id to stdout.

Usage:
    python -m clinicbook.issue_token ACTOR_ID [EXPIRES_MINUTES]
"""
import sys

from clinicbook.auth.jwt_handler import create_access_token


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    if not args or not args[0].isdigit():
        print("Usage: python -m clinicbook.issue_token ACTOR_ID [EXPIRES_MINUTES]", file=sys.stderr)
        sys.exit(1)
    expires_minutes = int(args[1]) if len(args) > 1 else None
    print(create_access_token(subject=int(args[0]), expires_minutes=expires_minutes))


if __name__ == "__main__":
    main()
