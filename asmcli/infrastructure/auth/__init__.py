"""Client assertion signing and access token acquisition.
Bounded Context: Authentication
"""
