"""
Adapter layer for the portal storage gateway.

One adapter per storage kind: record tables (DynamoDB), blob containers (S3),
the order queue (SQS) and the contracts file share (mounted filesystem).
"""
