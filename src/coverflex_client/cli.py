from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from .config_loader import load_config
from .exceptions import CoverflexError, InvalidCredentials, Unauthenticated
from .factory import Coverflex, build

logger = logging.getLogger("coverflex-cli")

RESOURCES = ("operations", "benefits", "cards", "company", "compensation", "family")
DEFAULT_RESOURCES = ("operations", "benefits", "compensation", "family")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Coverflex employee API client (login + resource reads)",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file (defaults to the nearest .env found)",
    )
    common.add_argument(
        "--token-store",
        choices=("local", "gcp"),
        default=None,
        help="Force TOKEN_STORE (local|gcp)",
    )
    common.add_argument(
        "--gcp-project-id",
        default=None,
        help="Override GCP project id for the gcp token store",
    )
    common.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    login_cmd = subparsers.add_parser("login", parents=[common], help="Authenticate and manage tokens")
    login_cmd.add_argument("--user", default=None, help="Account email (default: COVERFLEX_USERNAME)")
    login_cmd.add_argument("--pass", dest="password", default=None, help="Account password (default: COVERFLEX_PASSWORD)")
    login_cmd.add_argument("-o", "--otp", default=None, help="One-time passcode received via SMS")
    login_cmd.add_argument(
        "--force-refresh",
        action="store_true",
        help="Renew the stored tokens without entering credentials",
    )

    subparsers.add_parser("status", parents=[common], help="Show whether tokens are stored")

    fetch_cmd = subparsers.add_parser("fetch", parents=[common], help="Print employee resources as JSON")
    fetch_cmd.add_argument("resource", nargs="?", default="all", choices=("all",) + RESOURCES)
    fetch_cmd.add_argument("--page", type=int, default=None, help="Operations page")
    fetch_cmd.add_argument("--per-page", type=int, default=None, help="Operations per page")
    fetch_cmd.add_argument("--filter-type", default=None, help="Operation type to filter by")

    args = parser.parse_args(argv)
    if args.command is None:
        args = parser.parse_args(["fetch", *(argv or [])])
    return args


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    return value


def _print_json(label: str, value: Any) -> None:
    print(json.dumps({label: _to_jsonable(value)}, indent=2, ensure_ascii=False))


def run_login(app: Coverflex, args: argparse.Namespace) -> None:
    if args.force_refresh:
        logger.info("Force refresh option detected.")
        tokens = app.repository.get_tokens()
        if not app.refresher.refresh_tokens(tokens.refresh_token):
            raise Unauthenticated("Failed to refresh tokens. Please log in again.")
        logger.info("Tokens have been refreshed. Testing the new token:")
        _print_json("operations", app.client.get_operations())
        return

    if app.client.is_logged_in():
        logger.info("You are already logged in. Use --force-refresh to renew the tokens.")
        return

    user = args.user or app.settings.COVERFLEX_USERNAME
    password = args.password or app.settings.COVERFLEX_PASSWORD
    if not user or not password:
        raise InvalidCredentials(
            "Provide your Coverflex email and password with --user/--pass "
            "or COVERFLEX_USERNAME/COVERFLEX_PASSWORD"
        )

    if args.otp:
        app.auth.login(user, password, args.otp)
        logger.info("Logged in.")
        return

    challenge = app.auth.request_otp(user, password)
    print(f"OTP sent to phone ending in ...{challenge.phone_last_digits}")
    logger.info("Re-run the command with --otp to finish logging in.")


def run_fetch(app: Coverflex, args: argparse.Namespace) -> None:
    fetchers: Dict[str, Callable[[], Any]] = {
        "operations": lambda: app.client.get_operations(
            page=args.page, per_page=args.per_page, filter_type=args.filter_type
        ),
        "benefits": app.client.get_benefits,
        "cards": app.client.get_cards,
        "company": app.client.get_company,
        "compensation": app.client.get_compensation,
        "family": app.client.get_family,
    }
    names = DEFAULT_RESOURCES if args.resource == "all" else (args.resource,)
    for name in names:
        _print_json(name, fetchers[name]())


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s %(message)s",
    )

    try:
        settings = load_config(
            env_file=args.env_file,
            token_store=args.token_store,
            gcp_project_id=args.gcp_project_id,
        )
        app = build(settings)

        if args.command == "status":
            print(json.dumps({"logged_in": app.client.is_logged_in()}))
        elif args.command == "login":
            run_login(app, args)
        else:
            run_fetch(app, args)
    except Unauthenticated as exc:
        logger.error("%s Run `coverflex-client login` again.", exc)
        raise SystemExit(1) from exc
    except (CoverflexError, ValueError) as exc:
        # ValueError also covers settings validation errors
        logger.error("%s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
