"""
HARBOR Infrastructure Layer

Scheduling, event transport, storage, metrics and error tracking.
Every component sits behind an interface so sessions can run against
virtual time and in-memory fakes in tests.
"""
