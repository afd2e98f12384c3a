"""JSON file storage for applications.

The whole collection lives in one JSON array. Every mutation is a full
read-modify-write of that file, serialised by a reader/writer lock owned by
the store object. Only safe within a single process.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from apptracker.models.application import Application
from apptracker.services.query import filter_applications

logger = logging.getLogger(__name__)

_collection = TypeAdapter(list[Application])


class StoreError(Exception):
    """Base class for storage failures."""


class ApplicationNotFound(StoreError):
    def __init__(self, app_id: str) -> None:
        super().__init__(f"application not found: {app_id}")
        self.app_id = app_id


class StoreIOError(StoreError):
    """The backing file or directory could not be read, written or created."""


class StoreDecodeError(StoreError):
    """The backing file is not a valid JSON array of applications."""


class ReadWriteLock:
    """Shared/exclusive lock. Waiting writers block new readers. Not reentrant."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def shared(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class ApplicationStore:
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._lock = ReadWriteLock()

    def initialize(self) -> None:
        """Create the data directory and an empty document if they are missing.

        An existing but unreadable document is only logged here; the error
        surfaces again on the first real read.
        """
        with self._lock.exclusive():
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                exists = self.path.exists()
            except OSError as e:
                raise StoreIOError(f"failed to create data directory {self.path.parent}: {e}") from e
            if not exists:
                self._write([])
                logger.info("Created empty application store at %s", self.path)
                return

        try:
            apps = self.get_all()
        except StoreError as e:
            logger.warning("Application store at %s did not validate: %s", self.path, e)
        else:
            logger.info("Application store at %s holds %d application(s)", self.path, len(apps))

    def get_all(self) -> list[Application]:
        with self._lock.shared():
            return self._read()

    def get_by_id(self, app_id: str) -> Application:
        for app in self.get_all():
            if app.id == app_id:
                return app
        raise ApplicationNotFound(app_id)

    def save(self, application: Application) -> None:
        """Insert or replace by id. Replacements keep their position."""
        with self._lock.exclusive():
            apps = self._read()
            for i, existing in enumerate(apps):
                if existing.id == application.id:
                    apps[i] = application
                    break
            else:
                apps.append(application)
            self._write(apps)
        logger.debug("Saved application %s", application.id)

    def update(self, app_id: str, mutate: Callable[[Application], None]) -> Application:
        """Load one application, apply ``mutate`` to it and write it back.

        The lookup, mutation and write share one exclusive lock, so two
        concurrent edits of the same record cannot overwrite each other.
        """
        with self._lock.exclusive():
            apps = self._read()
            for application in apps:
                if application.id == app_id:
                    break
            else:
                raise ApplicationNotFound(app_id)
            mutate(application)
            self._write(apps)
        logger.debug("Updated application %s", app_id)
        return application

    def delete(self, app_id: str) -> None:
        with self._lock.exclusive():
            apps = self._read()
            remaining = [app for app in apps if app.id != app_id]
            if len(remaining) == len(apps):
                raise ApplicationNotFound(app_id)
            self._write(remaining)
        logger.debug("Deleted application %s", app_id)

    def search(self, query: str | None = None, tags: Sequence[str] | None = None) -> list[Application]:
        return filter_applications(self.get_all(), query, tags)

    # Callers must hold the lock.

    def _read(self) -> list[Application]:
        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise StoreIOError(f"failed to read {self.path}: {e}") from e
        try:
            return _collection.validate_json(raw)
        except ValidationError as e:
            raise StoreDecodeError(f"failed to decode {self.path}: {e}") from e

    def _write(self, apps: list[Application]) -> None:
        data = _collection.dump_json(apps, by_alias=True, indent=2)
        try:
            self.path.write_bytes(data)
        except OSError as e:
            raise StoreIOError(f"failed to write {self.path}: {e}") from e
