"""Version of the onboarder package."""

__version__ = "0.3.0"

VERSION_INFO = tuple(int(part) for part in __version__.split("."))

PACKAGE_NAME = "onboarder"
