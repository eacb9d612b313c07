"""Startup restore policy.

Decides once, at launch, what to reopen:

1. an explicit path opens that document's own archived windows (or one
   fresh window) and nothing else;
2. otherwise, files requested by the environment before launch finished
   each get the same per-document treatment;
3. otherwise the full prior session is reopened, skipping documents that
   can no longer be found.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ..document.identity import IdentityResolver
from ..document.model import WindowState
from ..errors import IdentityError, UnresolvableLocator, UpdraftError
from ..persistence.store import PersistentStore

logger = logging.getLogger(__name__)


class RestoreMode(enum.Enum):
    EXPLICIT_PATH = "explicit_path"
    REQUESTED_FILES = "requested_files"
    FULL_SESSION = "full_session"


@dataclass(frozen=True)
class WindowOpening:
    """One window to open: a fresh view when ``window`` is ``None``."""

    path: Path
    window: WindowState | None = None
    fingerprint_ok: bool = True


@dataclass(frozen=True)
class RestoreFailure:
    path: Path | None
    error: UpdraftError


@dataclass
class RestorePlan:
    mode: RestoreMode
    openings: list[WindowOpening] = field(default_factory=list)
    failures: list[RestoreFailure] = field(default_factory=list)


class RestorePolicy:
    """One-shot launch-mode evaluation against a ``PersistentStore``."""

    def __init__(self, store: PersistentStore, resolver: IdentityResolver) -> None:
        self.store = store
        self.resolver = resolver
        self.evaluated = False

    def plan(
        self,
        explicit_path: Path | str | None = None,
        requested_paths: Sequence[Path | str] = (),
    ) -> RestorePlan:
        """Evaluate the launch inputs; may only be called once."""
        if self.evaluated:
            raise RuntimeError("restore policy has already been evaluated")
        self.evaluated = True

        if explicit_path is not None:
            plan = RestorePlan(mode=RestoreMode.EXPLICIT_PATH)
            try:
                plan.openings.extend(self.plan_document(explicit_path))
                return plan
            except IdentityError as exc:
                logger.warning("Cannot open %s: %s", explicit_path, exc)
                failure = RestoreFailure(Path(explicit_path), exc)
            # The document itself is unusable; fall back to whatever session exists.
            fallback = self._plan_session()
            fallback.failures.insert(0, failure)
            return fallback

        if requested_paths:
            plan = RestorePlan(mode=RestoreMode.REQUESTED_FILES)
            for requested in requested_paths:
                try:
                    plan.openings.extend(self.plan_document(requested))
                except IdentityError as exc:
                    logger.warning("Cannot open requested file %s: %s", requested, exc)
                    plan.failures.append(RestoreFailure(Path(requested), exc))
            return plan

        return self._plan_session()

    def plan_document(self, path: Path | str) -> list[WindowOpening]:
        """Per-document restore: archived windows, or one fresh window.

        Raises ``IdentityError`` when ``path`` itself cannot be identified.
        """
        key = self.resolver.resolve(path)
        target = self.resolver.try_locator_of(key)
        if target is None:
            raise IdentityError(path, "file vanished while opening")
        windows = self.store.load_archived_windows(target)
        if not windows:
            return [WindowOpening(path=target)]
        return [
            WindowOpening(
                path=target,
                window=window,
                fingerprint_ok=self.resolver.fingerprint_matches(window.document, target),
            )
            for window in windows
        ]

    def _plan_session(self) -> RestorePlan:
        plan = RestorePlan(mode=RestoreMode.FULL_SESSION)
        for window in self.store.load_session().windows:
            try:
                path = self.resolver.locator_of(window.document)
            except UnresolvableLocator as exc:
                logger.info("Skipping session window: %s", exc)
                plan.failures.append(RestoreFailure(exc.last_known_path, exc))
                continue
            plan.openings.append(
                WindowOpening(
                    path=path,
                    window=window,
                    fingerprint_ok=self.resolver.fingerprint_matches(window.document, path),
                )
            )
        return plan
