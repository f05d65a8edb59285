import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY') or 'dev-secret-key-change-me'
    DATABASE_URL = os.getenv('DATABASE_URL')
    SQLALCHEMY_DATABASE_URI = DATABASE_URL or 'sqlite:///clubreg.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PORT = _int_env('PORT', 3000)

    # Single administrative identity; unset means nobody is authorized
    ADMIN_PASSWORD = os.getenv('ADMIN_PASSWORD')

    # Hosted checkout provider
    STRIPE_SECRET_KEY = os.getenv('STRIPE_SECRET_KEY', '')
    STRIPE_WEBHOOK_SECRET = os.getenv('STRIPE_WEBHOOK_SECRET', '')
    STRIPE_TIMEOUT_SECONDS = _int_env('STRIPE_TIMEOUT_SECONDS', 10)
    STRIPE_MAX_NETWORK_RETRIES = _int_env('STRIPE_MAX_NETWORK_RETRIES', 2)
    CURRENCY = os.getenv('CURRENCY', 'usd')

    # Used to build provider return URLs
    FRONTEND_URL = (os.getenv('FRONTEND_URL') or 'http://localhost:5173').rstrip('/')
    CORS_ORIGINS = [
        origin.strip()
        for origin in (os.getenv('CORS_ORIGINS') or FRONTEND_URL).split(',')
        if origin.strip()
    ]

    CLUB_NAME = os.getenv('CLUB_NAME', 'Cavalry FC')
    MIN_DONATION_CENTS = _int_env('MIN_DONATION_CENTS', 100)
    # Unpaid, non-waitlist registrations older than this are reported as abandoned
    ABANDONED_AFTER_HOURS = _int_env('ABANDONED_AFTER_HOURS', 24)

    RATELIMIT_ENABLED = os.getenv('RATELIMIT_ENABLED', 'true').lower() in ('1', 'true', 'yes')
    WTF_CSRF_ENABLED = False
