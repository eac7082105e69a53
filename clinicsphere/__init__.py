"""
ClinicSphere Scheduler

A FastAPI service for booking clinic appointments between doctors and
patients, with role-based ownership rules and double-booking prevention.
"""

__version__ = "1.0.0"
