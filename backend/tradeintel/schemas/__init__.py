from .import_summary import ImportSummaryResponse

__all__ = [
    "ImportSummaryResponse",
]
