"""Client-side column values, SQL types and conversions for a columnar database."""

__version__ = "0.1.0"
__all__ = ["refconvert", "sqltypes", "unmarshal", "value", "value_ref"]