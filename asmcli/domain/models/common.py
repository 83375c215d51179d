"""Defines common Value Objects used across the API access layer.

These are plain strings at runtime; NewType keeps signatures readable.
"""

from typing import NewType

# === Identity ===
SerialNumber = NewType("SerialNumber", str)      # Device serial, e.g. C02YK2ABJG5H
ServerID = NewType("ServerID", str)              # MDM server id
ModelIdentifier = NewType("ModelIdentifier", str)  # e.g. MacBookPro15,2

# === Authentication ===
AccessToken = NewType("AccessToken", str)        # Opaque bearer token
ClientAssertion = NewType("ClientAssertion", str)  # Signed JWT (header.payload.signature)

# === Transport ===
URL = NewType("URL", str)
