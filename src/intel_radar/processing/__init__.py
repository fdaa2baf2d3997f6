"""Feed curation pipeline and multi-provider AI orchestration."""

__all__ = [
    "filtering",
    "formatter",
    "llm_client",
    "orchestrator",
    "parsing",
    "pipeline",
    "relink",
    "repair",
    "selection",
    "types",
]
