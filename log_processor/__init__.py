"""
S3/SQS log processor

Turns S3 object-created notifications received through SQS into decoded log
events, deleting a notification only after its objects were fully processed.
"""

__version__ = '1.0.0'
