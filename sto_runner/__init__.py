"""Selective test orchestration runner.

Import the public surface from :mod:`sto_runner.api`.
"""
