"""API Resilience Implementations.

Contains the request pacer and the retrying executor that absorbs
rate-limit (429) responses with exponential backoff.
Bounded Context: API Resilience
"""
