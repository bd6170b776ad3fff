"""Delivery mechanisms exposing the application."""
