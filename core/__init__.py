# core/__init__.py
"""
Core application for the Kalabo school portal.
"""
