"""Helpers for using project logging."""

from __future__ import annotations

from logging import DEBUG, NullHandler, getLogger

get = getLogger

get('polyjson').addHandler(NullHandler())

__all__ = ['DEBUG', 'get']
