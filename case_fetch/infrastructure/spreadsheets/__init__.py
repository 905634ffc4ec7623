"""Spreadsheet parsing infrastructure package."""

from .case_sheet_reader import OpenpyxlCaseSheetReader

__all__ = ["OpenpyxlCaseSheetReader"]
