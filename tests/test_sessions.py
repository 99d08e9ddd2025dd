import gc

from reahl.tofu import Fixture
from reahl.tofu import NoException
from reahl.tofu import expected
from reahl.tofu import with_fixtures

from reahl.stonebrowser.gemstone.session import GemstoneSessionHandle
from reahl.stonebrowser.sessions import SessionSelection
from reahl.stonebrowser.sessions import Subscribers

from session_stubs import ScriptedSessionHandle


class SelectionListener:
    def __init__(self):
        self.selected_session_ids = []

    def selection_changed(self, session_id=None):
        self.selected_session_ids.append(session_id)


class SelectionFixture(Fixture):
    def new_session_selection(self):
        return SessionSelection()

    def new_listener(self):
        listener = SelectionListener()
        self.session_selection.subscribe_selection_changed(listener.selection_changed)
        return listener


@with_fixtures(SelectionFixture)
def test_add_and_remove_session(fixture):
    gemstone_session = object()
    metadata = {'connection_mode': 'linked'}

    with expected(NoException):
        session_id = fixture.session_selection.add_session(gemstone_session, metadata)

    assert fixture.session_selection.has_session(session_id)
    session_handle = fixture.session_selection.get_session(session_id)
    assert isinstance(session_handle, GemstoneSessionHandle)
    assert session_handle.gemstone_session is gemstone_session
    assert session_handle.session_id == session_id
    assert fixture.session_selection.get_metadata(session_id) == metadata

    with expected(NoException):
        removed_handle = fixture.session_selection.remove_session(session_id)

    assert removed_handle is session_handle
    assert not fixture.session_selection.has_session(session_id)


@with_fixtures(SelectionFixture)
def test_selecting_a_session_notifies_only_on_change(fixture):
    fixture.session_selection.add_handle(ScriptedSessionHandle(session_id='session-1'))
    listener = fixture.listener

    fixture.session_selection.select_session('session-1')
    fixture.session_selection.select_session('session-1')

    assert listener.selected_session_ids == ['session-1']
    assert fixture.session_selection.selected_session().session_id == 'session-1'


@with_fixtures(SelectionFixture)
def test_unknown_sessions_cannot_be_selected(fixture):
    with expected(KeyError):
        fixture.session_selection.select_session('missing')

    assert fixture.session_selection.selected_session() is None


@with_fixtures(SelectionFixture)
def test_removing_the_selected_session_clears_the_selection(fixture):
    fixture.session_selection.add_handle(ScriptedSessionHandle(session_id='session-1'))
    fixture.session_selection.add_handle(ScriptedSessionHandle(session_id='session-2'))
    fixture.session_selection.select_session('session-1')
    listener = fixture.listener

    fixture.session_selection.remove_session('session-2')
    fixture.session_selection.remove_session('session-1')

    assert listener.selected_session_ids == [None]
    assert fixture.session_selection.selected_session() is None
    assert fixture.session_selection.session_ids() == []


@with_fixtures(SelectionFixture)
def test_clearing_sessions_clears_the_selection(fixture):
    fixture.session_selection.add_handle(ScriptedSessionHandle(session_id='session-1'))
    fixture.session_selection.select_session('session-1')
    listener = fixture.listener

    fixture.session_selection.clear_sessions()

    assert listener.selected_session_ids == [None]
    assert fixture.session_selection.session_ids() == []


def test_subscribers_die_with_their_owner():
    subscribers = Subscribers()
    listener = SelectionListener()
    subscribers.subscribe(listener.selection_changed)

    subscribers.notify(session_id='session-1')
    del listener
    gc.collect()

    assert subscribers.live_callbacks() == []
