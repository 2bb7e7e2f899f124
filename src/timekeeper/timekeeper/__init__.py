"""Timekeeper core package.

Organized by feature modules (holidays, attendance, corrections) with a thin
Flask controller layer over service/repository layers.
"""
