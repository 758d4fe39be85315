"""
Retail and student portal API.

A FastAPI layer over ``StorageGateway``, which maps record, blob, queue and
file-share operations onto DynamoDB, S3, SQS and a mounted network share.
"""
