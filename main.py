"""
Review Dashboard - Web Server Entry Point
=========================================

Run this to start the web dashboard:
    python main.py

Then open http://127.0.0.1:8000 in your browser.

To print a report for a single export without the web UI:
    python analyze_reviews.py reviews.xlsx
"""

import uvicorn

from review_dashboard.infrastructure.config import get_settings


def main():
    """Start the web server."""
    settings = get_settings().dashboard

    print("\n" + "=" * 50)
    print("   Review Dashboard")
    print("=" * 50)
    print(f"\n   Starting server at http://{settings.host}:{settings.port}")
    print("   Press Ctrl+C to stop\n")

    uvicorn.run(
        "review_dashboard.web.app:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
