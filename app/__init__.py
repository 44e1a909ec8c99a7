"""
Doctor Appointment Booking

A FastAPI backend for booking doctor appointments: patient, doctor and admin
accounts, slot booking and cancellation, and PayU online payments.
"""

__version__ = "1.0.0"
