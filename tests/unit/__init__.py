"""
Unit tests for the HubSpot client core.

Test individual components in isolation:
- Request/Response models and CallContext
- Error classifier (retryability table, Retry-After, rate-limit headers)
- Rate limiter (token bucket, daily quota, server feedback)
- Retry policy (backoff, attempt loop, cancellation)
- Pipeline stages, transport and the client facade
"""
