from reahl.ptongue import GemstoneError


class FakeGemstoneError(GemstoneError):
    """Minimal GemstoneError for testing: bypasses the real constructor,
    which requires an active session and a C error structure."""

    def __init__(self, message='Simulated Smalltalk error', number=2101, context=None):
        self.fake_message = message
        self.fake_number = number
        self.fake_context = context

    def __str__(self):
        return self.fake_message

    @property
    def number(self):
        return self.fake_number

    @property
    def context(self):
        return self.fake_context

    @property
    def is_fatal(self):
        return False

    @property
    def reason(self):
        return ''


class RemoteObject:
    def __init__(self, description):
        self.description = description

    def __repr__(self):
        return 'RemoteObject(%r)' % self.description


class ScriptedSessionHandle:
    """Stands in for a GemstoneSessionHandle, answering executed source from a script.

    ``responses`` is a list of (marker, answer) pairs: the first pair whose
    marker occurs in the executed source supplies the answer. An answer that
    is an exception is raised instead of returned.
    """

    def __init__(self, responses=None, session_id='session-1'):
        self.session_id = session_id
        self.responses = list(responses or [])
        self.busy = False
        self.executed_sources = []
        self.resolved_names = []
        self.calls = []
        self.symbol_failures = {}
        self.perform_failure = None
        self.new_string_failure = None
        self.new_symbol_failure = None
        self.compile_failure = None
        self.clear_stack_failure = None
        self.transaction_failure = None

    def claim(self):
        if self.busy:
            return False
        self.busy = True
        return True

    def release(self):
        self.busy = False

    def call_in_progress(self):
        return self.busy

    def resolve_symbol(self, name):
        self.resolved_names.append(name)
        self.calls.append(('resolve_symbol', name))
        if name in self.symbol_failures:
            raise self.symbol_failures[name]
        return RemoteObject(name)

    def execute_fetch_string(self, source, result_class, max_result_size):
        self.executed_sources.append(source)
        self.calls.append(('execute_fetch_string', result_class, max_result_size))
        for marker, answer in self.responses:
            if marker in source:
                if isinstance(answer, Exception):
                    raise answer
                return answer[:max_result_size]
        return ''

    def new_string(self, value):
        self.calls.append(('new_string', value))
        if self.new_string_failure:
            raise self.new_string_failure
        return RemoteObject('string %s' % value)

    def new_symbol(self, value):
        self.calls.append(('new_symbol', value))
        if self.new_symbol_failure:
            raise self.new_symbol_failure
        return RemoteObject('symbol %s' % value)

    def perform(self, receiver, selector, *arguments):
        self.calls.append(('perform', receiver.description, selector))
        if self.perform_failure:
            raise self.perform_failure
        return RemoteObject('%s %s' % (receiver.description, selector))

    def compile_method(
        self,
        source,
        behavior,
        category,
        symbol_list=None,
        override_selector=None,
        compile_flags=0,
        environment_id=0,
    ):
        self.calls.append(
            (
                'compile_method',
                source.description,
                behavior.description,
                category.description,
                symbol_list,
                override_selector,
                compile_flags,
                environment_id,
            )
        )
        if self.compile_failure:
            raise self.compile_failure
        return RemoteObject('compiled method')

    def clear_stack(self, context):
        self.calls.append(('clear_stack', context))
        if self.clear_stack_failure:
            raise self.clear_stack_failure

    def begin(self):
        self.transaction_control('begin')

    def commit(self):
        self.transaction_control('commit')

    def abort(self):
        self.transaction_control('abort')

    def transaction_control(self, action_name):
        self.calls.append((action_name,))
        if self.transaction_failure:
            raise self.transaction_failure

    def call_names(self):
        return [call[0] for call in self.calls]


class FakeRemote:
    """A remote object as ptongue hands it out: ``to_py`` plus whatever messages are sent to it."""

    def __init__(self, to_py):
        self.to_py = to_py
        self.received_messages = []

    def asSymbol(self):
        self.received_messages.append(('asSymbol',))
        return FakeRemote('#%s' % self.to_py)

    def perform(self, selector, *arguments):
        self.received_messages.append(('perform', selector) + arguments)
        return FakeRemote('%s %s' % (self.to_py, selector))

    def compileMethod_dictionaries_category_environmentId(
        self,
        source,
        symbol_list,
        category,
        environment_id,
    ):
        self.received_messages.append(
            ('compile', source.to_py, symbol_list.to_py, category.to_py, environment_id)
        )
        return FakeRemote('compiled')

    def terminate(self):
        self.received_messages.append(('terminate',))


class FakeGemstoneSession:
    """Stands in for a ptongue LinkedSession or RPCSession.

    ``results`` maps executed source to the Python value of its result.
    ``during_execute``, when set, is called with the source before answering.
    """

    def __init__(self, results=None):
        self.results = dict(results or {})
        self.executed_sources = []
        self.transactions = []
        self.during_execute = None

    def execute(self, source):
        self.executed_sources.append(source)
        if self.during_execute:
            self.during_execute(source)
        return FakeRemote(self.results.get(source, ''))

    def resolve_symbol(self, name):
        return FakeRemote(name)

    def from_py(self, value):
        return FakeRemote(value)

    def begin(self):
        self.transactions.append('begin')

    def commit(self):
        self.transactions.append('commit')

    def abort(self):
        self.transactions.append('abort')
