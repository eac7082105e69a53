"""
Test suite for the ClinicSphere Scheduler.

Contains unit tests for the scheduling service and API tests for the routes.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite://")
