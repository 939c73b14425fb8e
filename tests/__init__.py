"""
Test suite for the customs import tool.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_customs_api.py -v
"""
