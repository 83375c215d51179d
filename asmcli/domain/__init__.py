"""Domain Layer: records, value objects, interfaces and errors.

Has no dependencies on the infrastructure layer.
"""
