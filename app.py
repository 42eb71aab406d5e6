#!/usr/bin/env python3
#USE VENV: source venv/bin/activate
"""
Run script for the Asset Attestation service
"""

import argparse
import json
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from app.build import build_database  # noqa: E402
from app.logger import get_logger  # noqa: E402

# Note: Admin credentials are configured via environment variables.
# Run 'python generate_env.py' to create .env file with secure passwords.

logger = get_logger("asset_attestation.run")


def parse_arguments():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Asset Attestation Service')
    parser.add_argument('--build-only', action='store_true',
                        help='Build database tables and the admin account, then exit')
    parser.add_argument('--no-admin', action='store_false', dest='seed_admin',
                        help='Do not create the admin account from ADMIN_EMAIL/ADMIN_PASSWORD')
    parser.add_argument('--run-attestation-tasks', action='store_true',
                        help='Run the reminder, escalation and auto-close sweeps once, then exit')

    return parser.parse_args()


def run_attestation_tasks(app):
    """Run every sweep once and print the summary"""
    from app.buisness.attestation.reminder_manager import ReminderManager

    with app.app_context():
        summary = ReminderManager().run_all()
    print(json.dumps(summary.to_dict(), indent=2, default=str))


if __name__ == '__main__':
    args = parse_arguments()

    logger.debug("Starting Asset Attestation Service...")

    app = build_database(seed_admin=args.seed_admin)

    if args.build_only:
        logger.debug("Build completed. Exiting without starting web server.")
        sys.exit(0)

    if args.run_attestation_tasks:
        run_attestation_tasks(app)
        sys.exit(0)

    # Read configuration from environment variables
    # FLASK_DEBUG: Enable/disable debug mode (default: False for security)
    debug_mode = os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1', 'yes', 'on')

    # USE_RELOADER: Enable/disable auto-reloader (default: False in production)
    use_reloader = os.environ.get('USE_RELOADER', 'False').lower() in ('true', '1', 'yes', 'on')

    # FLASK_HOST: Server host (default: 127.0.0.1 for security)
    host = os.environ.get('FLASK_HOST', '127.0.0.1')

    # FLASK_PORT: Server port (default: 5000)
    port = int(os.environ.get('FLASK_PORT', '5000'))

    if debug_mode:
        logger.warning("DEBUG MODE ENABLED - Do not use in production!")

    logger.info(f"Starting server on {host}:{port} (debug={debug_mode}, reloader={use_reloader})")
    app.run(debug=debug_mode, host=host, port=port, use_reloader=use_reloader)
