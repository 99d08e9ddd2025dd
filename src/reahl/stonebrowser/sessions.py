import threading
import uuid
import weakref

from reahl.stonebrowser.gemstone.session import GemstoneSessionHandle


def callback_reference_for(callback):
    try:
        return weakref.WeakMethod(callback)
    except TypeError:
        return weakref.ref(callback)


class Subscribers:
    """Weakly referenced callbacks; a callback dies with its owner."""

    def __init__(self):
        self.lock = threading.RLock()
        self.callback_references = []

    def subscribe(self, callback):
        with self.lock:
            self.callback_references.append(callback_reference_for(callback))

    def live_callbacks(self):
        with self.lock:
            callbacks = []
            live_callback_references = []
            for callback_reference in self.callback_references:
                callback = callback_reference()
                if callback is None:
                    continue
                callbacks.append(callback)
                live_callback_references.append(callback_reference)
            self.callback_references = live_callback_references
            return callbacks

    def notify(self, **keywords):
        for callback in self.live_callbacks():
            callback(**keywords)


class SessionSelection:
    """The logged-in sessions, and which one of them the browser shows."""

    def __init__(self):
        self.lock = threading.RLock()
        self.sessions_by_id = {}
        self.metadata_by_id = {}
        self.selected_session_id = None
        self.selection_changed_subscribers = Subscribers()

    def add_session(self, gemstone_session, metadata=None, session_id=None):
        session_id = session_id or str(uuid.uuid4())
        with self.lock:
            self.sessions_by_id[session_id] = GemstoneSessionHandle(
                gemstone_session,
                session_id,
            )
            self.metadata_by_id[session_id] = metadata or {}
        return session_id

    def add_handle(self, session_handle, metadata=None):
        with self.lock:
            self.sessions_by_id[session_handle.session_id] = session_handle
            self.metadata_by_id[session_handle.session_id] = metadata or {}
        return session_handle.session_id

    def get_session(self, session_id):
        with self.lock:
            return self.sessions_by_id[session_id]

    def get_metadata(self, session_id):
        with self.lock:
            return self.metadata_by_id[session_id]

    def has_session(self, session_id):
        with self.lock:
            return session_id in self.sessions_by_id

    def session_ids(self):
        with self.lock:
            return list(self.sessions_by_id)

    def remove_session(self, session_id):
        with self.lock:
            session_handle = self.sessions_by_id.pop(session_id)
            self.metadata_by_id.pop(session_id, None)
            was_selected = self.selected_session_id == session_id
            if was_selected:
                self.selected_session_id = None
        if was_selected:
            self.selection_changed_subscribers.notify(session_id=None)
        return session_handle

    def clear_sessions(self):
        with self.lock:
            had_selection = self.selected_session_id is not None
            self.sessions_by_id.clear()
            self.metadata_by_id.clear()
            self.selected_session_id = None
        if had_selection:
            self.selection_changed_subscribers.notify(session_id=None)

    def select_session(self, session_id):
        with self.lock:
            if session_id is not None and session_id not in self.sessions_by_id:
                raise KeyError(session_id)
            is_change = self.selected_session_id != session_id
            self.selected_session_id = session_id
        if is_change:
            self.selection_changed_subscribers.notify(session_id=session_id)

    def selected_session(self):
        with self.lock:
            if self.selected_session_id is None:
                return None
            return self.sessions_by_id.get(self.selected_session_id)

    def subscribe_selection_changed(self, callback):
        self.selection_changed_subscribers.subscribe(callback)
