"""
Test utilities for building S3 event notifications
"""
