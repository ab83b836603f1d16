"""
Arc Pay CLI.

Commands:
  arcpay serve                — Start the HTTP API (uvicorn)
  arcpay sweep-subscriptions  — Charge every due subscription once (run from cron)
"""

import sys

from arcpay.config import ArcPayConfig, configure_logging


def serve_command(config: ArcPayConfig) -> None:
    """Start the API server on ARCPAY_HOST:ARCPAY_PORT."""
    import uvicorn

    from arcpay.server import create_app

    app = create_app(config)
    print(f"[ARCPAY] Listening on http://{config.host}:{config.port} ({config.environment})")
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


def sweep_command(config: ArcPayConfig) -> int:
    """One pass over stored subscriptions. Exit code 1 if any charge failed."""
    from arcpay.payments import get_payment_provider
    from arcpay.storage import build_stores
    from arcpay.subscriptions import SubscriptionService
    from arcpay.wallets import WalletRegistry

    if not config.kv_configured:
        print("[ARCPAY] Workers KV is not configured; nothing to sweep in an empty in-memory store.")
        return 0
    stores = build_stores(config)
    wallets = WalletRegistry(stores.preferences, get_payment_provider(config))
    report = SubscriptionService(stores.subscriptions, wallets).check_due()

    print(f"[ARCPAY] Charged {len(report.processed)} subscription(s).")
    for sub_id in report.processed:
        print(f"  ✅ {sub_id}")
    for key, error in report.failed.items():
        print(f"  ❌ {key}: {error}")
    return 1 if report.failed else 0


def _usage() -> None:
    print("Arc Pay CLI")
    print("\nCommands:")
    print("  arcpay serve                — Start the HTTP API")
    print("  arcpay sweep-subscriptions  — Charge due subscriptions (cron)")


def main(argv=None) -> None:
    """CLI entry point."""
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        _usage()
        sys.exit(1)

    config = ArcPayConfig.from_env()
    configure_logging(config.log_level)

    command = argv[0]
    if command == "serve":
        serve_command(config)
    elif command == "sweep-subscriptions":
        sys.exit(sweep_command(config))
    else:
        print(f"Unknown command: {command}")
        _usage()
        sys.exit(1)


if __name__ == "__main__":
    main()
