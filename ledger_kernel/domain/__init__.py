"""Kernel domain layer -- pure value objects (clock, actor, workflow)."""
