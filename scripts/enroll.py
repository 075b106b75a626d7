"""Drive the enrollment client from the command line.

Logs in (when credentials are given), runs one action through the same
session-gated controller the page uses, then prints the banner message and
the refreshed roster.

Run with: python scripts/enroll.py list
Signup:   python scripts/enroll.py -u alice -p secret signup "Chess Club" a@x.com
Withdraw: python scripts/enroll.py -u alice -p secret unregister "Chess Club" a@x.com
Account:  python scripts/enroll.py -u alice -p secret register
Identity: python scripts/enroll.py -u alice -p secret whoami

Credentials and the API URL can also come from ENROLLMENT_USERNAME,
ENROLLMENT_PASSWORD and ENROLLMENT_API_BASE_URL (or a .env file).

Exit codes:
  0 = success
  1 = error (message on stderr)
"""

import argparse
import asyncio
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.enrollment.api import EnrollmentAPI  # noqa: E402
from src.enrollment.config import get_config  # noqa: E402
from src.enrollment.controller import (  # noqa: E402
    ActionController,
    ActionState,
    GatedActionResult,
)
from src.enrollment.errors import (  # noqa: E402
    EnrollmentClientError,
    ServerRejectedError,
    SessionRequiredError,
    TransportError,
)
from src.enrollment.logging import get_logger, setup_logging  # noqa: E402
from src.enrollment.session import ActionResult  # noqa: E402

log = get_logger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    config = get_config()
    parser = argparse.ArgumentParser(
        description="Activity enrollment client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--base-url", default=config.api_base_url, help="API root URL")
    parser.add_argument("-u", "--username", default=config.username)
    parser.add_argument("-p", "--password", default=config.password)

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("list", help="Show activities and participants")
    commands.add_parser("whoami", help="Show the logged-in user")
    commands.add_parser("register", help="Create an account for --username")
    for name in ("signup", "unregister"):
        sub = commands.add_parser(name, help=f"{name.capitalize()} an email")
        sub.add_argument("activity")
        sub.add_argument("email")

    return parser.parse_args(argv)


def _check(result: ActionResult) -> None:
    """Raise if an action did not succeed, so main() exits non-zero.

    Raises:
        SessionRequiredError: A gated action was denied for lack of a session.
        TransportError: No usable response came back.
        ServerRejectedError: The server answered with a non-success status.
    """
    if result.ok:
        return
    detail = result.message.text if result.message else None
    if isinstance(result, GatedActionResult) and result.state is ActionState.DENIED:
        raise SessionRequiredError(detail)
    if result.status is None:
        raise TransportError(detail)
    raise ServerRejectedError(result.status, detail)


async def main(args: argparse.Namespace) -> None:
    config = get_config()

    async with EnrollmentAPI(args.base_url) as api:
        controller = ActionController.from_config(api, config)
        await controller.start()

        if args.command == "register":
            _check(await controller.sessions.register(args.username, args.password))
            print(controller.banner.text)
            return

        if args.username and args.password:
            _check(await controller.sessions.login(args.username, args.password))

        if args.command == "whoami":
            await controller.sessions.refresh()
            session = controller.require_session()
            print(session.username)
            return

        if args.command in ("signup", "unregister"):
            action = getattr(controller, args.command)
            result = await action(args.activity, args.email)
            print(controller.banner.text)
            _check(result)

        print(controller.roster.as_text())


if __name__ == "__main__":
    args = _parse_args()
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)
    try:
        asyncio.run(main(args))
    except EnrollmentClientError as e:
        log.error("enroll_failed", command=args.command, error=str(e))
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
