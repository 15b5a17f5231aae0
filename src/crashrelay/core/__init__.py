"""
Core business logic components.

This package contains the webhook processing pipeline:
- Token authentication
- Request checks, decoding and filtering
- Translation into push records
- Delivery to Humio
- Metrics collection
"""
