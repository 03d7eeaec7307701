"""Client document tree: months, categories and files."""

from .tree_store import (
    validate_period,
    get_month,
    get_or_create_month,
    get_or_create_category,
    attach_files,
    remove_file,
    find_file,
    month_has_documents,
)

__all__ = [
    "validate_period",
    "get_month",
    "get_or_create_month",
    "get_or_create_category",
    "attach_files",
    "remove_file",
    "find_file",
    "month_has_documents",
]
