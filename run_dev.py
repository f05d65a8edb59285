#!/usr/bin/env python3
"""Development server runner for clubreg."""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv


def setup_environment():
    """Set up the development environment."""
    project_root = Path(__file__).parent
    sys.path.insert(0, str(project_root))

    env_file = project_root / '.env'
    if env_file.exists():
        load_dotenv(env_file)
        print(f"✓ Loaded environment from {env_file}")
    else:
        print(f"⚠️ No .env file found at {env_file}")

    os.environ.setdefault('FLASK_APP', 'clubreg')
    os.environ.setdefault('FLASK_DEBUG', '1')


def check_configuration():
    """Warn about settings the payment and admin flows need."""
    missing = [
        name for name in ('ADMIN_PASSWORD', 'STRIPE_SECRET_KEY', 'STRIPE_WEBHOOK_SECRET')
        if not os.environ.get(name)
    ]
    for name in missing:
        print(f"⚠️ {name} is not set")
    return not missing


def run_development_server():
    """Run the Flask development server."""
    from clubreg import create_app

    app = create_app()
    port = app.config['PORT']

    print("\n" + "="*60)
    print("🚀 Starting clubreg development server")
    print("="*60)
    print(f"Database: {app.config['SQLALCHEMY_DATABASE_URI']}")
    print(f"Frontend: {app.config['FRONTEND_URL']}")
    print("\n📱 API available at:")
    print(f"   • http://localhost:{port}/api/health")
    print("\n🛠️ To load the default teams, run in another terminal:")
    print("   flask --app clubreg seed teams")
    print("\n⏹️ Press Ctrl+C to stop the server")
    print("="*60)

    app.run(host='0.0.0.0', port=port, debug=True, use_reloader=True)


def main():
    """Main function to set up and run the development server."""
    print("Club Registration - Development Setup")
    print("="*60)

    setup_environment()
    if not check_configuration():
        print("\nCheckout and admin endpoints will fail until the settings above are provided.")

    try:
        run_development_server()
    except KeyboardInterrupt:
        print("\n\n🛑 Development server stopped by user")


if __name__ == "__main__":
    main()
