"""Synchronization engine: push processing, pull pagination and reconciliation."""
