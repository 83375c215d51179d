"""Entity Cache Implementation.

In-memory, process-lifetime maps of devices by serial number and
MDM servers by id.
Bounded Context: Cache Management
"""
