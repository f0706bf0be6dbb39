#!/usr/bin/env python3
"""
Startup script for the Tailor Shop Service
Customers, measurements, bills and Google Docs invoices
"""

import os
import sys
import logging
import argparse
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv(project_root / ".env")


def setup_logging(log_level: str = "INFO"):
    """Set up logging configuration."""
    logs_dir = project_root / "logs"
    logs_dir.mkdir(exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(logs_dir / "shop_service.log")
        ]
    )


def check_dependencies():
    """Check if required dependencies are installed."""
    REQUIRED_PACKAGES = [
        'fastapi',
        'uvicorn',
        'pydantic_settings',
        'googleapiclient',
        'google.oauth2',
        'supabase',
    ]

    missing_packages = []

    for package in REQUIRED_PACKAGES:
        try:
            __import__(package)
        except ImportError:
            missing_packages.append(package)

    if missing_packages:
        print(f"❌ Missing required packages: {', '.join(missing_packages)}")
        print("Install them with: pip install -e .")
        return False

    return True


def check_environment():
    """Check environment variables"""
    from tailor_ops.config.settings import get_settings
    settings = get_settings()

    if settings.invoice_configured:
        print("✅ Invoice generation is configured")
    else:
        print("⚠️  Invoice generation is not fully configured")
        if not settings.has_service_account:
            print(f"   Service account key not found at {settings.GOOGLE_SERVICE_ACCOUNT_FILE} "
                  "and GOOGLE_SERVICE_ACCOUNT_JSON is empty")
        for var in ('INVOICE_TEMPLATE_ID', 'INVOICE_FOLDER_ID'):
            if not getattr(settings, var):
                print(f"   {var} is not set")
        print("Service will start but /api/generate-invoice will report a configuration error")

    if settings.uses_supabase:
        print(f"✅ Supabase document store: {settings.SUPABASE_URL}")
    else:
        print(f"ℹ️  SUPABASE_URL not set, customers and bills go to {settings.LOCAL_DATA_DIR}")

    if not settings.ACCESS_PASSWORD:
        print("ℹ️  ACCESS_PASSWORD not set, the lock screen will reject every code")


def start_shop_service(host: str = "0.0.0.0", port: int = 8000, reload: bool = False):
    """Start the shop service"""
    try:
        import uvicorn

        print(f"🚀 Starting Tailor Shop Service on {host}:{port}")
        print(f"🧾 Invoice endpoint: http://{host}:{port}/api/generate-invoice")
        print(f"👗 Customers endpoint: http://{host}:{port}/api/customers")
        print(f"📊 Health check: http://{host}:{port}/health")

        uvicorn.run(
            "tailor_ops.services.shop_service:app",
            host=host,
            port=port,
            reload=reload,
            log_level="info"
        )

    except ImportError as e:
        print(f"❌ Failed to import required modules: {e}")
        print("Make sure you're in the correct directory and dependencies are installed")
        sys.exit(1)
    except Exception as e:
        print(f"❌ Failed to start shop service: {e}")
        sys.exit(1)


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Start the Tailor Shop Service")
    parser.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"), help="Host to bind to")
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")), help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"), help="Log level")
    parser.add_argument("--check-only", action="store_true", help="Only check dependencies and exit")

    args = parser.parse_args()

    # Setup logging
    setup_logging(args.log_level)

    print("🧵 Tailor Shop Service Startup")
    print("=" * 45)

    # Check dependencies
    print("📋 Checking dependencies...")
    if not check_dependencies():
        sys.exit(1)
    print("✅ All dependencies available")

    # Check environment
    print("🔧 Checking environment...")
    check_environment()

    if args.check_only:
        print("✅ All checks passed!")
        return

    # Start the service
    start_shop_service(
        host=args.host,
        port=args.port,
        reload=args.reload
    )


if __name__ == "__main__":
    main()
