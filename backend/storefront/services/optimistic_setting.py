# Overview: Read-through / write-through setting with optimistic apply and rollback.

"""
Optimistic Setting

READ (load):
    durable read -> value, refresh local cache
    durable read fails -> last cached value, else the default

WRITE (set):
    1. apply the new value locally and to the cache (callers see it at once)
    2. persist durably
    3. on failure: restore the prior value, re-persist it to the cache, and
       raise SettingWriteError so the caller can alert

A load() whose result arrives after a newer set(), or after close(), is
discarded rather than applied over fresher state.
"""

from __future__ import annotations

import copy
import threading
from typing import Callable, Generic, TypeVar

from flask import current_app

from .local_cache import LocalCache

T = TypeVar("T")


class SettingWriteError(RuntimeError):
    """Durable write failed; the setting was rolled back to its prior value."""

    def __init__(self, message: str, previous=None):
        super().__init__(message)
        self.previous = previous


class OptimisticSetting(Generic[T]):
    def __init__(
        self,
        *,
        name: str,
        load_remote: Callable[[], T | None],
        save_remote: Callable[[T], None],
        cache: LocalCache,
        cache_key: str,
        default: T,
    ):
        self.name = name
        self._load_remote = load_remote
        self._save_remote = save_remote
        self._cache = cache
        self._cache_key = cache_key
        self._default = default
        self._value: T = cache.load(cache_key, copy.deepcopy(default))
        self._generation = 0
        self._closed = False
        self._lock = threading.Lock()

    @property
    def value(self) -> T:
        return copy.deepcopy(self._value)

    def close(self) -> None:
        """Tear down: any in-flight load result is dropped from now on."""
        self._closed = True

    def load(self) -> T:
        with self._lock:
            generation = self._generation

        try:
            remote = self._load_remote()
        except Exception:
            current_app.logger.warning(
                "Durable read of %s failed, using cached value", self.name, exc_info=True
            )
            return self.value

        value = copy.deepcopy(self._default) if remote is None else remote
        with self._lock:
            if self._closed or generation != self._generation:
                return copy.deepcopy(self._value)
            self._value = value
        self._cache.save(self._cache_key, value)
        return self.value

    def set(self, new_value: T) -> T:
        with self._lock:
            previous = self._value
            self._generation += 1
            self._value = copy.deepcopy(new_value)
        self._cache.save(self._cache_key, new_value)

        try:
            self._save_remote(new_value)
        except Exception as exc:
            with self._lock:
                self._value = previous
            self._cache.save(self._cache_key, previous)
            current_app.logger.warning("Durable write of %s failed, rolled back", self.name, exc_info=True)
            raise SettingWriteError(f"Could not save {self.name}", previous=copy.deepcopy(previous)) from exc
        return self.value
