#!/usr/bin/env python3
"""VolleyManager session client.

Logs in to VolleyManager and saves the resulting session token, or logs out.

Usage:
    python main.py
    python main.py --transport browser --headed
    python main.py --logout
"""

import sys
import argparse
from datetime import datetime

from refsession.utils.config import get_config, SUPPORTED_TRANSPORTS
from refsession.utils.logger import setup_logging, get_logger


logger = get_logger(__name__)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Establish a VolleyManager session"
    )
    parser.add_argument(
        "--transport",
        choices=SUPPORTED_TRANSPORTS,
        help="HTTP transport (overrides TRANSPORT env var)"
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window when using the browser transport"
    )
    parser.add_argument(
        "--session-file",
        type=str,
        help="Where to save the session (overrides SESSION_FILE env var)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Overall login deadline in seconds (overrides LOGIN_TIMEOUT_SECONDS env var)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (overrides LOG_LEVEL env var)"
    )
    parser.add_argument(
        "--logout",
        action="store_true",
        help="Log out instead of logging in"
    )
    return parser.parse_args(argv)


def describe_saved_session(saved) -> str:
    """One-line summary of a previously saved session."""
    saved_at = saved.get("saved_at")
    if isinstance(saved_at, (int, float)):
        return f"saved {datetime.fromtimestamp(saved_at):%Y-%m-%d %H:%M:%S}"
    return "saved at an unknown time"


def build_transport(config, transport_name: str, headless: bool):
    """Create the configured transport."""
    if transport_name == "browser":
        from refsession.api.browser_transport import BrowserTransport
        return BrowserTransport(
            origin_url=config.base_url,
            headless=headless,
            request_timeout_seconds=config.request_timeout_seconds,
        )

    from refsession.api.transport import RequestsTransport
    return RequestsTransport(request_timeout_seconds=config.request_timeout_seconds)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = get_config()
        config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}")
        print("\nPlease create a .env file based on .env.example")
        return 1

    # Setup logging
    log_level = args.log_level or config.log_level
    setup_logging(log_level=log_level, log_to_console=True, log_dir=config.log_dir)

    from refsession.auth.authenticator import SessionAuthenticator
    from refsession.auth.cancellation import AttemptCancelled, CancellationToken
    from refsession.auth.session_sink import JsonFileSessionSink

    transport_name = args.transport or config.transport
    headless = False if args.headed else config.headless_mode
    sink = JsonFileSessionSink(args.session_file or config.session_file)

    print("=" * 60)
    print("VolleyManager Session Client")
    print("=" * 60)
    print(f"\nUsername: {config.username}")
    print(f"Base URL: {config.base_url}")
    print(f"Transport: {transport_name}")
    print()

    with build_transport(config, transport_name, headless) as transport:
        authenticator = SessionAuthenticator(
            transport=transport,
            session_sink=sink,
            cookie_delay_seconds=config.cookie_delay_seconds,
        )

        if args.logout:
            ok = authenticator.logout(config.logout_url)
            sink.clear()
            print("✓ Logged out" if ok else "✗ Logout request failed")
            return 0 if ok else 1

        saved = sink.load()
        if saved:
            print(f"Existing session ({describe_saved_session(saved)}) will be replaced")

        cancel = CancellationToken(timeout=args.timeout or config.login_timeout_seconds)
        try:
            outcome = authenticator.establish_session(
                login_page_url=config.login_page_url,
                auth_url=config.auth_url,
                username=config.username,
                password=config.password,
                cancel=cancel,
            )
        except (AttemptCancelled, KeyboardInterrupt):
            cancel.cancel()
            print("\n✗ Login cancelled")
            return 1

    if outcome.success:
        print("\n" + "=" * 60)
        print("✓ Authentication successful!")
        print("=" * 60)
        print(f"\nSession saved to {sink.session_file}")
        return 0

    logger.debug(f"Login outcome: {outcome}")
    print(f"\n✗ {outcome.message}")
    if outcome.hint:
        print(f"  Hint: {outcome.hint}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
