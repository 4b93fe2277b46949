#!/usr/bin/env python3
# =============================================================================
# scripts/start_worker.py - Celery Worker Entry Point
# =============================================================================
# Starts a Celery worker to process queued cover jobs.
#
# Usage:
#   # Start worker (development)
#   python -m scripts.start_worker
#
#   # Or use Celery CLI directly
#   celery -A workers.celery_app worker -Q images,default --loglevel=info
#
# Prerequisites:
#   - Redis must be running (brew services start redis)
#   - Environment variables must be set (.env file)
# =============================================================================

from workers.celery_app import celery_app


def main():
    """Start the Celery worker."""
    print("=" * 60)
    print("Cover Image Celery Worker")
    print("=" * 60)
    print()
    print("Starting worker...")
    print("Press Ctrl+C to stop")
    print()

    # Covers are CPU-bound; keep concurrency low
    celery_app.worker_main([
        "worker",
        "--loglevel=info",
        "--queues=images,default",
        "--concurrency=2",
    ])


if __name__ == "__main__":
    main()
