"""Global intelligence radar: feed curation plus two-provider AI digest."""

__all__ = ["core", "processing", "scrapers", "utils"]
__version__ = "0.1.0"
