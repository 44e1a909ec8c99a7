"""
Test suite for the doctor appointment booking API.

Runs against SQLite and the in-memory redis stand-in.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
