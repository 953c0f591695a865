"""
Utility functions and helpers.

Components:
    - logging: Logging configuration with Rich

Example:
    ```python
    from llm_codable.utils import setup_logging

    setup_logging(level="INFO", log_file="llm_codable.log")
    ```
"""

from llm_codable.utils.logging import setup_logging

__all__ = ["setup_logging"]
