"""Output formatters for run results."""

from .base import BaseFormatter
from .json_formatter import JsonFormatter, result_to_dict
from .rich_formatter import RichFormatter, rankings_table

__all__ = ["BaseFormatter", "JsonFormatter", "RichFormatter", "rankings_table", "result_to_dict"]
