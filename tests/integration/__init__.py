"""
Integration tests for the S3/SQS log processor

These tests run the complete poll loop against moto-mocked SQS and S3.
"""
