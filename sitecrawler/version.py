"""Central versioning and schema constants for the crawler."""

__all__ = ["__version__", "CONFIG_SCHEMA_VERSION", "DEFAULT_USER_AGENT"]

#: Semantic version of this codebase (bump using SemVer).
__version__ = "0.1.0"

#: Configuration schema version (increment if breaking changes to config format).
CONFIG_SCHEMA_VERSION = 1

#: User-Agent sent with every page request unless configured otherwise.
DEFAULT_USER_AGENT = f"sitecrawler/{__version__}"
