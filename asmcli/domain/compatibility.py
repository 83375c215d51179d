"""Static macOS compatibility table.

Maps a model identifier (e.g. ``Mac14,5``) to the major macOS versions it
can run. Version names are normalized to numbers before any comparison.
"""

from typing import FrozenSet, List, Optional, Union

SEQUOIA = 15
TAHOE = 26

VERSION_NAMES = {
    "sequoia": SEQUOIA,
    "tahoe": TAHOE,
}

MACOS_15_SEQUOIA_MODELS: FrozenSet[str] = frozenset({
    "iMac19,1", "iMac19,2", "iMac20,1", "iMac20,2", "iMac21,1", "iMac21,2",
    "iMacPro1,1",
    "Mac13,1", "Mac13,2",
    "Mac14,2", "Mac14,3", "Mac14,5", "Mac14,6", "Mac14,7", "Mac14,8",
    "Mac14,9", "Mac14,10", "Mac14,12", "Mac14,13", "Mac14,14", "Mac14,15",
    "Mac15,3", "Mac15,4", "Mac15,5", "Mac15,6", "Mac15,7", "Mac15,8",
    "Mac15,9", "Mac15,10", "Mac15,11", "Mac15,12", "Mac15,13",
    "MacBookAir9,1", "MacBookAir10,1",
    "MacBookPro15,1", "MacBookPro15,2", "MacBookPro15,3", "MacBookPro15,4",
    "MacBookPro16,1", "MacBookPro16,2", "MacBookPro16,3", "MacBookPro16,4",
    "MacBookPro17,1",
    "MacBookPro18,1", "MacBookPro18,2", "MacBookPro18,3", "MacBookPro18,4",
    "Macmini8,1", "Macmini9,1",
    "MacPro7,1",
})

MACOS_26_TAHOE_MODELS: FrozenSet[str] = frozenset({
    "iMac20,1", "iMac20,2", "iMac21,1", "iMac21,2",
    "Mac13,1", "Mac13,2",
    "Mac14,2", "Mac14,3", "Mac14,5", "Mac14,6", "Mac14,7", "Mac14,8",
    "Mac14,9", "Mac14,10", "Mac14,12", "Mac14,13", "Mac14,14", "Mac14,15",
    "Mac15,3", "Mac15,4", "Mac15,5", "Mac15,6", "Mac15,7", "Mac15,8",
    "Mac15,9", "Mac15,10", "Mac15,11", "Mac15,12", "Mac15,13", "Mac15,14",
    "Mac16,1", "Mac16,2", "Mac16,3", "Mac16,5", "Mac16,6", "Mac16,7",
    "Mac16,8", "Mac16,9", "Mac16,10", "Mac16,11", "Mac16,12", "Mac16,13",
    "MacBookAir10,1",
    "MacBookPro16,1", "MacBookPro16,2", "MacBookPro16,4",
    "MacBookPro17,1",
    "MacBookPro18,1", "MacBookPro18,2", "MacBookPro18,3", "MacBookPro18,4",
    "Macmini9,1",
    "MacPro7,1",
})

# Ordered oldest to newest
_VERSION_TABLE = (
    (SEQUOIA, MACOS_15_SEQUOIA_MODELS),
    (TAHOE, MACOS_26_TAHOE_MODELS),
)


def normalize_version(version: Union[int, str]) -> Optional[int]:
    """Turns a version number or name ('Tahoe', '26', 26) into an int.

    Returns None for a string that is neither a known name nor a number.
    """
    if isinstance(version, int):
        return version
    name = version.strip().lower()
    if name in VERSION_NAMES:
        return VERSION_NAMES[name]
    try:
        return int(name)
    except ValueError:
        return None


def supported_versions(model_identifier: Optional[str]) -> List[int]:
    """Returns the macOS major versions supported by a model, ascending."""
    if not model_identifier:
        return []
    return [version for version, models in _VERSION_TABLE if model_identifier in models]


def supports(model_identifier: Optional[str], version: Union[int, str]) -> bool:
    """Checks whether a model supports a macOS version (number or name)."""
    version_num = normalize_version(version)
    if version_num is None:
        return False
    return version_num in supported_versions(model_identifier)


def latest_supported(model_identifier: Optional[str]) -> Optional[int]:
    """Returns the newest supported macOS version, or None for older models."""
    versions = supported_versions(model_identifier)
    return max(versions) if versions else None
