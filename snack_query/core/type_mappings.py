"""
Type mapping utilities for checking values against their declared DataType.
"""

from datetime import date, datetime
from typing import Any, Dict, Tuple

from snack_query.core.models import DataType


class TypeMapper:
    """Maps declared data types to the Python types that may carry them."""
    
    SCALAR_TYPE_MAP: Dict[DataType, Tuple[type, ...]] = {
        DataType.INT64: (int,),
        DataType.INT: (int,),
        DataType.STRING: (str,),
        DataType.FLOAT64: (float, int),
        DataType.TIME: (datetime, date, str),
        DataType.BOOL: (bool,),
    }
    
    ARRAY_ITEM_TYPE_MAP: Dict[DataType, Tuple[type, ...]] = {
        DataType.STRING_ARRAY: (str,),
        DataType.INT64_ARRAY: (int,),
        DataType.UINT64_ARRAY: (int,),
    }
    
    @classmethod
    def is_array_type(cls, data_type: DataType) -> bool:
        return data_type in cls.ARRAY_ITEM_TYPE_MAP
    
    @classmethod
    def matches(cls, data_type: DataType, value: Any) -> bool:
        """
        Check whether a value is compatible with a declared data type.
        
        Scalar types also accept a list of matching scalars, since
        operators such as IN and ALL take a list of the field's type.
        Array types accept a single item as well (pushing or pulling one
        element of an array field).
        
        Args:
            data_type: Declared DataType of the entry
            value: Payload to check
            
        Returns:
            True if the value fits the declared type
        """
        if value is None:
            return True
        
        if data_type in cls.ARRAY_ITEM_TYPE_MAP:
            item_types = cls.ARRAY_ITEM_TYPE_MAP[data_type]
            items = value if isinstance(value, (list, tuple)) else [value]
            if data_type == DataType.UINT64_ARRAY:
                return all(cls._is_int(v) and v >= 0 for v in items)
            return all(cls._is_instance(v, item_types) for v in items)
        
        allowed = cls.SCALAR_TYPE_MAP.get(data_type)
        if allowed is None:
            return True
        
        items = value if isinstance(value, (list, tuple)) else [value]
        return all(cls._is_instance(v, allowed) for v in items)
    
    @staticmethod
    def _is_int(value: Any) -> bool:
        # bool is a subclass of int but never a valid integer payload
        return isinstance(value, int) and not isinstance(value, bool)
    
    @classmethod
    def _is_instance(cls, value: Any, allowed: Tuple[type, ...]) -> bool:
        if bool not in allowed and isinstance(value, bool):
            return False
        return isinstance(value, allowed)
