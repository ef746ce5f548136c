#!/usr/bin/env python3
"""
decorators.py
--------------------
Decorators for CatalogStore mutations.
"""
from functools import wraps
from time import perf_counter
from typing import Callable, List

from sermonlib.core.validators import DataValidator


def log_catalog_operation(operation_name: str):
    """
    Record a store mutation in the owner's ``logger``.

    On success a mutation record carries the catalog size after the call
    and the elapsed time; on failure the error is logged and re-raised.
    Owners without a logger are left alone.

    Args:
        operation_name: Event name for the records (e.g. 'save_sermon')
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            started = perf_counter()
            logger = getattr(self, "logger", None)
            try:
                result = function(self, *args, **kwargs)
            except Exception as e:
                if logger:
                    logger.log_error(
                        e,
                        {
                            "operation": operation_name,
                            "seconds": round(perf_counter() - started, 4),
                        },
                    )
                raise

            if logger:
                logger.log_mutation(
                    operation_name,
                    sermons=len(self),
                    series=len(self.series),
                    seconds=perf_counter() - started,
                )
            return result

        return wrapper

    return decorator


def validate_fields(required_fields: List[str]):
    """
    Decorator to validate a record's attributes before processing.

    The record is the first positional argument after ``self``; its
    attributes are checked with ``DataValidator.validate_required_fields``.

    Args:
        required_fields: List of required attribute names

    Returns:
        Decorator function
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, record, *args, **kwargs):
            data = {name: getattr(record, name, None) for name in required_fields}
            DataValidator.validate_required_fields(data, required_fields)
            return function(self, record, *args, **kwargs)

        return wrapper

    return decorator
