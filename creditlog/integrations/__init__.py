"""
Integrations with third-party libraries like Pydantic.
"""

from .pydantic import PydanticNormalizedRow, from_dataclass, rows_to_pydantic

__all__ = ["from_dataclass", "rows_to_pydantic", "PydanticNormalizedRow"]
