import threading

import pytest

from reahl.tofu import Fixture
from reahl.tofu import expected
from reahl.tofu import with_fixtures

from reahl.ptongue import GemstoneApiError

from reahl.stonebrowser.gemstone.browser import GemstoneBrowserSession
from reahl.stonebrowser.gemstone.protocol import ResultClassCache
from reahl.stonebrowser.gemstone.protocol import SessionBusyError
from reahl.stonebrowser.gemstone.protocol import execute_fetch_string
from reahl.stonebrowser.gemstone.session import GemstoneSessionHandle

from session_stubs import FakeGemstoneSession
from session_stubs import FakeRemote


class StepObservingBrowserSession(GemstoneBrowserSession):
    def __init__(self, session, result_classes=None):
        super().__init__(session, result_classes=result_classes)
        self.busy_before_each_step = []

    def remote_step(self, action, failure_message):
        self.busy_before_each_step.append(self.session.call_in_progress())
        return super().remote_step(action, failure_message)


class SessionHandleFixture(Fixture):
    def new_gemstone_session(self):
        return FakeGemstoneSession(
            {
                'names': 'Globals\nUserGlobals\n',
                'System myUserProfile symbolList': 'a SymbolList',
            }
        )

    def new_handle(self):
        return GemstoneSessionHandle(self.gemstone_session, 'session-1')

    def new_result_classes(self):
        return ResultClassCache()

    def query(self, source):
        return execute_fetch_string(
            self.handle,
            source,
            source,
            result_classes=self.result_classes,
        )


@with_fixtures(SessionHandleFixture)
def test_only_one_logical_call_can_claim_the_handle(fixture):
    assert fixture.handle.claim()
    assert fixture.handle.call_in_progress()
    assert not fixture.handle.claim()

    fixture.handle.release()

    assert not fixture.handle.call_in_progress()
    assert fixture.handle.claim()


@with_fixtures(SessionHandleFixture)
def test_a_query_arriving_during_another_call_fails_at_once(fixture):
    """The second caller is refused while the first is still executing; it does not wait its turn."""
    executing = threading.Event()
    may_finish = threading.Event()
    first_results = []

    def wait_while_executing(source):
        if source == 'names':
            executing.set()
            assert may_finish.wait(5)

    fixture.gemstone_session.during_execute = wait_while_executing
    first = threading.Thread(target=lambda: first_results.append(fixture.query('names')))
    first.start()
    try:
        assert executing.wait(5)
        with expected(SessionBusyError):
            fixture.query('nil printString')
    finally:
        may_finish.set()
        first.join(5)

    assert first_results == ['Globals\nUserGlobals\n']
    assert fixture.gemstone_session.executed_sources == ['names']
    assert not fixture.handle.call_in_progress()


@with_fixtures(SessionHandleFixture)
def test_the_session_stays_busy_between_the_steps_of_a_compile(fixture):
    browser = StepObservingBrowserSession(fixture.handle, fixture.result_classes)

    browser.compile_method('Order', True, 'accessing', 'total ^0')

    assert browser.busy_before_each_step == [True, True, True, True]
    assert not fixture.handle.call_in_progress()


@with_fixtures(SessionHandleFixture)
def test_each_primitive_call_counts_as_in_progress(fixture):
    observed = []
    fixture.gemstone_session.during_execute = (
        lambda source: observed.append(fixture.handle.call_in_progress())
    )

    fixture.handle.execute_fetch_string('names', FakeRemote('Utf8'), 100)

    assert observed == [True]
    assert not fixture.handle.call_in_progress()


@with_fixtures(SessionHandleFixture)
def test_fetched_strings_are_cut_to_the_maximum_size(fixture):
    assert fixture.handle.execute_fetch_string('names', FakeRemote('Utf8'), 7) == 'Globals'


@with_fixtures(SessionHandleFixture)
def test_fetching_needs_a_string_result_and_a_result_class(fixture):
    fixture.gemstone_session.results['3 + 4'] = 7

    with pytest.raises(GemstoneApiError, match='Expected a string result, got int'):
        fixture.handle.execute_fetch_string('3 + 4', FakeRemote('Utf8'), 100)
    with expected(GemstoneApiError):
        fixture.handle.execute_fetch_string('names', None, 100)

    assert fixture.gemstone_session.executed_sources == ['3 + 4']
    assert not fixture.handle.call_in_progress()


@with_fixtures(SessionHandleFixture)
def test_compile_uses_the_user_symbol_list_by_default(fixture):
    behavior = FakeRemote('Order')

    compiled_method = fixture.handle.compile_method(
        FakeRemote('total ^0'),
        behavior,
        FakeRemote('#accessing'),
        environment_id=1,
    )

    assert compiled_method.to_py == 'compiled'
    assert fixture.gemstone_session.executed_sources == ['System myUserProfile symbolList']
    assert behavior.received_messages == [
        ('compile', 'total ^0', 'a SymbolList', '#accessing', 1),
    ]


@with_fixtures(SessionHandleFixture)
def test_compile_refuses_override_selectors_and_flags(fixture):
    behavior = FakeRemote('Order')

    with expected(GemstoneApiError):
        fixture.handle.compile_method(
            FakeRemote('total ^0'),
            behavior,
            FakeRemote('#accessing'),
            override_selector=FakeRemote('#sum'),
        )
    with expected(GemstoneApiError):
        fixture.handle.compile_method(
            FakeRemote('total ^0'),
            behavior,
            FakeRemote('#accessing'),
            compile_flags=1,
        )

    assert behavior.received_messages == []
    assert fixture.gemstone_session.executed_sources == []


@with_fixtures(SessionHandleFixture)
def test_remote_objects_are_made_and_sent_messages(fixture):
    receiver = FakeRemote('Order')
    context = FakeRemote('a GsProcess')

    assert fixture.handle.new_string('total ^0').to_py == 'total ^0'
    assert fixture.handle.new_symbol('accessing').to_py == '#accessing'
    assert fixture.handle.perform(receiver, 'class').to_py == 'Order class'
    fixture.handle.clear_stack(context)

    assert receiver.received_messages == [('perform', 'class')]
    assert context.received_messages == [('terminate',)]


@with_fixtures(SessionHandleFixture)
def test_transactions_are_controlled_through_the_handle(fixture):
    fixture.handle.begin()
    fixture.handle.commit()
    fixture.handle.abort()

    assert fixture.gemstone_session.transactions == ['begin', 'commit', 'abort']
    assert not fixture.handle.call_in_progress()
