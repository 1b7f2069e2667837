"""Execution engine: process runner, cancellation and the run loop."""
