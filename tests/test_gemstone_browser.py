import pytest

from reahl.tofu import Fixture
from reahl.tofu import NoException
from reahl.tofu import expected
from reahl.tofu import with_fixtures

from reahl.stonebrowser.gemstone.browser import GemstoneBrowserSession
from reahl.stonebrowser.gemstone.browser import dictionary_names
from reahl.stonebrowser.gemstone.browser import method_source
from reahl.stonebrowser.gemstone.protocol import BrowserQueryError
from reahl.stonebrowser.gemstone.protocol import ResultClassCache
from reahl.stonebrowser.gemstone.protocol import SessionBusyError
from reahl.stonebrowser.gemstone.records import DictionaryEntry
from reahl.stonebrowser.gemstone.records import EnvironmentCategory

from session_stubs import FakeGemstoneError
from session_stubs import RemoteObject
from session_stubs import ScriptedSessionHandle


class BrowserFixture(Fixture):
    def new_session(self):
        return ScriptedSessionHandle()

    def new_browser(self):
        return GemstoneBrowserSession(
            self.session,
            result_classes=ResultClassCache(),
        )

    def respond(self, marker, answer):
        self.session.responses.append((marker, answer))

    def compile_calls(self):
        return [call for call in self.session.calls if call[0] == 'compile_method']


@with_fixtures(BrowserFixture)
def test_dictionary_names_are_answered_in_order(fixture):
    fixture.respond('names do:', 'Globals\nUserGlobals\nPublished\n')

    assert fixture.browser.dictionary_names() == ['Globals', 'UserGlobals', 'Published']


@with_fixtures(BrowserFixture)
def test_class_names_are_sorted_locally(fixture):
    fixture.respond('isBehavior ifTrue:', 'Zebra\nApple\nMango\n')

    assert fixture.browser.class_names('UserGlobals') == ['Apple', 'Mango', 'Zebra']


@with_fixtures(BrowserFixture)
def test_dictionary_entries_are_decoded(fixture):
    fixture.respond('at: 2.', '1\tKernel\tObject\n0\t\tTranscript\n')

    assert fixture.browser.dictionary_entries(2) == [
        DictionaryEntry(True, 'Kernel', 'Object'),
        DictionaryEntry(False, '', 'Transcript'),
    ]


@with_fixtures(BrowserFixture)
def test_class_environments_are_decoded(fixture):
    fixture.respond('_unifiedCategorys:', 'Order\t0\taccessing\ttotal\t\n')

    assert fixture.browser.class_environments(1, 'Order', 0) == [
        EnvironmentCategory(False, 0, 'accessing', ['total']),
    ]


@with_fixtures(BrowserFixture)
def test_method_source_is_answered_verbatim(fixture):
    fixture.respond('sourceString', 'total\n\t^lines inject: 0 into: [:a :b | a + b]')

    assert fixture.browser.method_source('Order', False, 'total') == (
        'total\n\t^lines inject: 0 into: [:a :b | a + b]'
    )


@with_fixtures(BrowserFixture)
def test_mutations_send_their_generated_code(fixture):
    """Each simple mutation is one executed snippet built from its arguments."""
    fixture.respond("'ok'", 'ok')

    fixture.browser.delete_method('Order', True, 'new')
    fixture.browser.recategorize_method('Order', False, 'total', 'computing')
    fixture.browser.rename_category('Order', False, 'old', 'new')
    fixture.browser.delete_class('UserGlobals', 'Order')
    fixture.browser.move_class('UserGlobals', 'Published', 'Order')
    fixture.browser.set_class_comment('Order', "An order's lines")

    sources = fixture.session.executed_sources
    assert len(sources) == 6
    assert "class removeSelector: #'new'" in sources[0]
    assert "moveMethod: #'total' toCategory: 'computing'" in sources[1]
    assert "renameCategory: 'old' to: 'new'" in sources[2]
    assert "removeKey: #'Order'" in sources[3]
    assert "objectNamed: #'Published'" in sources[4]
    assert "comment: 'An order''s lines'" in sources[5]


@with_fixtures(BrowserFixture)
def test_queries_refuse_a_busy_session(fixture):
    fixture.session.busy = True

    with expected(SessionBusyError):
        fixture.browser.dictionary_names()
    with expected(SessionBusyError):
        fixture.browser.compile_method('Order', False, 'accessing', 'total ^0')

    assert fixture.session.calls == []


class CompileFixture(BrowserFixture):
    def compile(self, is_meta=False, environment_id=0, browser=None):
        return (browser or self.browser).compile_method(
            'Order',
            is_meta,
            'accessing',
            'total ^0',
            environment_id=environment_id,
        )


@with_fixtures(CompileFixture)
def test_compile_on_instance_side(fixture):
    compiled_method = fixture.compile(environment_id=2)

    assert compiled_method.description == 'compiled method'
    assert fixture.session.call_names() == [
        'resolve_symbol',
        'new_string',
        'new_symbol',
        'compile_method',
    ]
    assert fixture.compile_calls() == [
        (
            'compile_method',
            'string total ^0',
            'Order',
            'symbol accessing',
            None,
            None,
            0,
            2,
        ),
    ]


@with_fixtures(CompileFixture)
def test_compile_on_class_side_compiles_into_the_metaclass(fixture):
    fixture.compile(is_meta=True)

    assert ('perform', 'Order', 'class') in fixture.session.calls
    assert fixture.compile_calls()[0][2] == 'Order class'


@with_fixtures(CompileFixture)
def test_compile_steps_report_where_they_failed(fixture):
    failures = [
        ('symbol_failures', {'Order': FakeGemstoneError('', 2101)}, 'Cannot resolve Order'),
        ('perform_failure', FakeGemstoneError('', 2010), 'Cannot get metaclass for Order'),
        ('new_string_failure', FakeGemstoneError('', 2011), 'Cannot create source string'),
        ('new_symbol_failure', FakeGemstoneError('', 2012), 'Cannot create category symbol'),
    ]
    for attribute_name, failure, message in failures:
        session = ScriptedSessionHandle()
        setattr(session, attribute_name, failure)
        browser = GemstoneBrowserSession(session, ResultClassCache())

        with pytest.raises(BrowserQueryError) as caught:
            fixture.compile(is_meta=True, browser=browser)
        assert caught.value.message == message
        assert 'compile_method' not in session.call_names()


@with_fixtures(CompileFixture)
def test_compile_error_clears_the_suspended_stack(fixture):
    suspended = RemoteObject('suspended process')
    fixture.session.compile_failure = FakeGemstoneError(
        'undefined symbol foo',
        number=1001,
        context=suspended,
    )

    with pytest.raises(BrowserQueryError) as caught:
        fixture.compile()

    assert caught.value.message == 'undefined symbol foo'
    assert caught.value.gci_error_number == 1001
    assert fixture.session.calls[-1] == ('clear_stack', suspended)


@with_fixtures(CompileFixture)
def test_compile_error_without_message_reports_its_number(fixture):
    fixture.session.compile_failure = FakeGemstoneError('', number=1001)

    with pytest.raises(BrowserQueryError, match='^Compile error 1001$'):
        fixture.compile()

    assert 'clear_stack' not in fixture.session.call_names()


@with_fixtures(CompileFixture)
def test_failing_to_clear_the_stack_does_not_hide_the_compile_error(fixture):
    fixture.session.compile_failure = FakeGemstoneError(
        'syntax error',
        number=1001,
        context=RemoteObject('suspended process'),
    )
    fixture.session.clear_stack_failure = FakeGemstoneError('stack is gone', number=2000)

    with pytest.raises(BrowserQueryError) as caught:
        fixture.compile()

    assert caught.value.message == 'syntax error'
    assert caught.value.gci_error_number == 1001


@with_fixtures(CompileFixture)
def test_compile_succeeds_when_nothing_fails(fixture):
    with expected(NoException):
        fixture.compile()


@with_fixtures(BrowserFixture)
def test_method_categories_and_selectors_keep_the_remote_order(fixture):
    fixture.respond('categoryNames', 'accessing\ntesting\n')
    fixture.respond('sortedSelectorsIn:', 'total\nlines\n')

    assert fixture.browser.method_categories('Order', True) == ['accessing', 'testing']
    assert fixture.browser.method_selectors('Order', False, 'accessing') == ['total', 'lines']
    assert "objectNamed: #'Order') class categoryNames" in fixture.session.executed_sources[0]


@with_fixtures(BrowserFixture)
def test_module_level_queries_use_a_browser_session(fixture):
    fixture.respond('names do:', 'Globals\n')
    fixture.respond('sourceString', 'yourself\n\t^self')

    assert dictionary_names(fixture.session) == ['Globals']
    assert method_source(fixture.session, 'Object', False, 'yourself', environment_id=1) == (
        'yourself\n\t^self'
    )
    assert 'environmentId: 1' in fixture.session.executed_sources[-1]


@with_fixtures(BrowserFixture)
def test_transactions_report_which_control_failed(fixture):
    fixture.browser.begin_transaction()
    fixture.session.transaction_failure = FakeGemstoneError('', 2407)

    with pytest.raises(BrowserQueryError) as caught:
        fixture.browser.commit_transaction()

    assert caught.value.message == 'Cannot commit the transaction'
    assert caught.value.gci_error_number == 2407
    assert fixture.session.call_names() == ['begin', 'commit']
    assert not fixture.session.busy
