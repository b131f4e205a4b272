"""Open diff views, one per diff identity.

DiffViewRegistry.open() reveals an existing view for the same
(filename, challenger, reference) or creates one. A new view subscribes
to repository head changes (reference side is HEAD) and to document
content changes (challenger side is the working tree), stamping the model
so the view's refresh button appears. Closing the view drops every
subscription and the registry entry.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Callable, Optional

from vcsflow.diff.model import DiffIdentity, DiffModel
from vcsflow.diff.providers import DiffProviderRegistry, DiffWidget, extension_of
from vcsflow.lib.errors import UnsupportedContentType, VcsflowError
from vcsflow.lib.interfaces import ViewHost
from vcsflow.lib.signals import Signal, Subscription
from vcsflow.lib.types import SpecialRef
from vcsflow.notifications import Level, Notifier

logger = logging.getLogger(__name__)

# Errors shown inside the view instead of propagating
LOAD_ERRORS = (VcsflowError, OSError, UnicodeDecodeError)


class LoadState(Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class RefreshButton:
    """Toolbar action that reloads the diff. Hidden until a side changes."""

    def __init__(self, widget: DiffWidget):
        self.widget = widget
        self.visible = False

    def show(self) -> None:
        self.visible = True

    async def click(self) -> None:
        await self.widget.refresh()
        self.visible = False


class DiffView:
    """Main-area container for one diff."""

    def __init__(self, identity: DiffIdentity, title: str, caption: str):
        self.id = identity.view_id
        self.identity = identity
        self.title = title
        self.caption = caption
        self.state = LoadState.LOADING
        self.error: Optional[str] = None
        self.content: Optional[DiffWidget] = None
        self.refresh_button: Optional[RefreshButton] = None
        self.closed = Signal("closed")
        self._is_closed = False

    def set_content(self, widget: DiffWidget) -> RefreshButton:
        self.content = widget
        self.state = LoadState.READY
        self.refresh_button = RefreshButton(widget)
        return self.refresh_button

    def set_error(self, message: str) -> None:
        self.state = LoadState.FAILED
        self.error = message

    @property
    def is_closed(self) -> bool:
        return self._is_closed

    def close(self) -> None:
        if self._is_closed:
            return
        self._is_closed = True
        self.closed.emit(self)


@dataclass
class DiffViewRecord:
    identity: DiffIdentity
    view: DiffView
    model: DiffModel
    subscriptions: list[Subscription] = field(default_factory=list)


class DiffViewRegistry:
    """Creates, de-duplicates and tears down diff views."""

    def __init__(
        self,
        view_host: ViewHost,
        providers: DiffProviderRegistry,
        notifier: Notifier,
        head_changed: Signal,
        contents_changed: Signal,
        path_key: Callable[[str], str] = lambda path: path,
    ):
        """
        Args:
            view_host: Where views are added and activated
            providers: Renderer lookup by extension
            notifier: Receives the unsupported-content notice
            head_changed: Emits when the repository HEAD moves
            contents_changed: Emits (path, new_timestamp) when a document changes on disk
            path_key: Maps a contents_changed path to the model's filename form
        """
        self.view_host = view_host
        self.providers = providers
        self.notifier = notifier
        self.head_changed = head_changed
        self.contents_changed = contents_changed
        self.path_key = path_key
        self._records: dict[DiffIdentity, DiffViewRecord] = {}

    def __len__(self):
        return len(self._records)

    def get(self, identity: DiffIdentity) -> Optional[DiffViewRecord]:
        return self._records.get(identity)

    async def open(self, model: DiffModel, is_text: bool = False) -> Optional[DiffView]:
        """Reveal or create the view for `model`.

        Returns None (after a notice) when no renderer handles the file.
        """
        builder = self.providers.resolve(model.filename, is_text)
        if builder is None:
            error = UnsupportedContentType(model.filename, extension_of(model.filename))
            logger.warning(f"[DIFF] {error}")
            self.notifier.log("Diff Not Supported", Level.ERROR, error=error)
            return None

        identity = model.identity
        existing = self.view_host.find(identity.view_id)
        if existing is not None:
            self.view_host.activate(identity.view_id)
            return existing

        stale = self._records.pop(identity, None)
        if stale is not None:
            self._drop(stale)

        view = DiffView(
            identity,
            title=PurePosixPath(model.filename).name,
            caption=f"{model.filename} ({model.reference.label} vs {model.challenger.label})",
        )
        record = DiffViewRecord(identity=identity, view=view, model=model)
        self._records[identity] = record
        self._subscribe(record)

        self.view_host.add(view)
        self.view_host.activate(view.id)
        logger.debug(f"[DIFF] opened {view.id}")

        try:
            widget = await builder(model)
        except LOAD_ERRORS as e:
            logger.error(f"[DIFF] Load Diff Model Error for {model.filename}: {e}")
            view.set_error(f"Load Diff Model Error ({e})")
            return view

        if view.is_closed:
            return view

        button = view.set_content(widget)
        record.subscriptions.append(model.changed.subscribe(lambda side: button.show()))
        return view

    def _subscribe(self, record: DiffViewRecord) -> None:
        model = record.model
        identity = record.identity

        if model.reference.source == "HEAD":
            record.subscriptions.append(
                self.head_changed.subscribe(lambda *args: model.stamp_reference())
            )

        if model.challenger.source == SpecialRef.WORKING.value:
            def on_contents_changed(path: str, new_timestamp: float) -> None:
                if self.path_key(path) != model.filename:
                    return
                if model.challenger.updated_at != new_timestamp:
                    model.stamp_challenger(new_timestamp)

            record.subscriptions.append(self.contents_changed.subscribe(on_contents_changed))

        record.subscriptions.append(
            record.view.closed.subscribe(lambda view: self._teardown(identity))
        )

    def _teardown(self, identity: DiffIdentity) -> None:
        record = self._records.pop(identity, None)
        if record is not None:
            self._drop(record)
            logger.debug(f"[DIFF] closed {identity.view_id}")

    @staticmethod
    def _drop(record: DiffViewRecord) -> None:
        for subscription in record.subscriptions:
            subscription.unsubscribe()
        record.subscriptions.clear()
