"""Domain Event definitions.

Represents significant occurrences within the API access layer
(calls, deferrals, retries, failures).
"""
