#!/usr/bin/env python3
"""
Basketball Registration Monitor - Main Entry Point

Runs the Flask web application with the recurring scraper in the background.

Usage:
    python main.py                 # web app + scheduler
    python main.py --no-scheduler  # web app only
    python main.py --once          # single scrape, then exit
    python main.py --test-email    # verify SMTP configuration
"""

import argparse
import sys

from config.settings import Settings, configure_logging


def main(argv=None):
    parser = argparse.ArgumentParser(description="Basketball Registration Monitor")

    # Web app specific arguments
    parser.add_argument("--host", default="0.0.0.0", help="Web app host")
    parser.add_argument("--port", type=int, default=5000, help="Web app port")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    parser.add_argument("--no-scheduler", action="store_true", help="Serve the API without scraping")
    parser.add_argument("--once", action="store_true", help="Run a single scrape and exit")
    parser.add_argument("--test-email", action="store_true", help="Send a test email and exit")

    args = parser.parse_args(argv)

    settings = Settings.from_env()
    configure_logging(settings.log_file)

    from services.application import Application
    application = Application(settings).init()

    try:
        if args.test_email:
            from webapp.services.email_service import send_test_email
            sent = send_test_email(application.channel, settings.recipient_email, settings.sender_email)
            return 0 if sent else 1

        if args.once:
            outcome = application.pipeline.run()
            print(f"Run finished: {outcome.status} ({len(outcome.registrations)} registrations)")
            return 0 if outcome.succeeded else 1

        from webapp.app import create_app
        app = create_app(application)

        if not args.no_scheduler:
            application.start_scheduler()

        print(f"🏀 Starting Basketball Registration Monitor...")
        print(f"📍 Server running at: http://{args.host}:{args.port}")
        print(f"🔧 Debug mode: {'ON' if args.debug else 'OFF'}")
        # The reloader would start a second scheduler
        app.run(host=args.host, port=args.port, debug=args.debug, use_reloader=False)
        return 0
    finally:
        application.shutdown()

if __name__ == "__main__":
    sys.exit(main())
