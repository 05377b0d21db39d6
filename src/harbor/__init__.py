"""
HARBOR - Crisis Risk Assessment & Escalation Engine

This package provides the backend services that score crisis risk,
run support sessions with counselor personas, and escalate to
emergency action when assessed risk requires it.

IMPORTANT: This is a safety-critical system. The critical resource
set (hotline numbers) must remain reachable on every failure path.
"""

__version__ = "0.1.0"
__author__ = "HARBOR Engineering Team"
