"""Adapters layer for LIMS Audit.

This module contains storage adapters that implement the Port interfaces
defined in the domain layer.
"""
