"""Template persistence.

SQLite access goes through a single DbOperator worker thread.
"""

from .db_operator import DbOperator
from .template_store import Template, TemplateStore

__all__ = [
    "DbOperator",
    "Template",
    "TemplateStore",
]
