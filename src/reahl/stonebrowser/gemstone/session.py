import contextlib
import logging
import os
import threading

from reahl.ptongue import (
    GemstoneApiError,
    GemstoneError,
    LinkedSession,
    RPCSession,
)


class DomainException(Exception):
    pass


standard_stream_lock = threading.Lock()


@contextlib.contextmanager
def without_process_output():
    with standard_stream_lock:
        stdout_descriptor = os.dup(1)
        stderr_descriptor = os.dup(2)
        null_descriptor = os.open(os.devnull, os.O_WRONLY)
        try:
            os.dup2(null_descriptor, 1)
            os.dup2(null_descriptor, 2)
            yield
        finally:
            os.dup2(stdout_descriptor, 1)
            os.dup2(stderr_descriptor, 2)
            os.close(null_descriptor)
            os.close(stdout_descriptor)
            os.close(stderr_descriptor)


def perform_without_process_output(action):
    with without_process_output():
        return action()


def create_linked_session(gemstone_user_name, gemstone_password, stone_name):
    logging.getLogger(__name__).debug(
        'Logging in linked session as %s stone_name=%s',
        gemstone_user_name,
        stone_name,
    )
    try:
        return perform_without_process_output(
            lambda: LinkedSession(
                gemstone_user_name,
                gemstone_password,
                stone_name=stone_name,
            )
        )
    except GemstoneError as error:
        raise DomainException('Gemstone error: %s' % error)


def create_rpc_session(
    gemstone_user_name,
    gemstone_password,
    rpc_hostname,
    stone_name,
    netldi_name,
):
    nrs_string = '!@%s#netldi:%s!gemnetobject' % (rpc_hostname, netldi_name)
    logging.getLogger(__name__).debug(
        'Logging in rpc session as %s stone_name=%s netldi_task=%s',
        gemstone_user_name,
        stone_name,
        nrs_string,
    )
    try:
        return perform_without_process_output(
            lambda: RPCSession(
                gemstone_user_name,
                gemstone_password,
                stone_name=stone_name,
                netldi_task=nrs_string,
            )
        )
    except GemstoneError as error:
        raise DomainException('Gemstone error: %s' % error)


def close_session(gemstone_session):
    perform_without_process_output(gemstone_session.log_out)


def session_summary(gemstone_session):
    return perform_without_process_output(
        lambda: {
            'stone_name': gemstone_session.System.stoneName().to_py,
            'host_name': gemstone_session.System.hostname().to_py,
            'user_name': gemstone_session.System.myUserProfile().userId().to_py,
            'session_id': gemstone_session.execute('System session').to_py,
        }
    )


def gemstone_error_payload(error):
    payload = {
        'message': str(error),
        'number': error.number,
        'is_fatal': error.is_fatal,
    }
    add_error_reason(error, payload)
    return payload


def add_error_reason(error, payload):
    try:
        payload['reason'] = error.reason
    except GemstoneError:
        payload['reason'] = ''


class GemstoneSessionHandle:
    """The narrow surface of a logged-in GemStone session used by browser queries.

    A logical call (one query, or every step of a compile) first has to
    :meth:`claim` the handle, and :meth:`release` it when done. A claim fails
    while another logical call holds the handle, so a second caller is
    refused instead of waiting. Each primitive call also counts itself in
    flight. Failures surface as the ``GemstoneError`` raised by ptongue.
    """

    def __init__(self, gemstone_session, session_id):
        self.gemstone_session = gemstone_session
        self.session_id = session_id
        self.lock = threading.Lock()
        self.call_depth = 0

    @contextlib.contextmanager
    def calling(self):
        with self.lock:
            self.call_depth = self.call_depth + 1
        try:
            with without_process_output():
                yield
        finally:
            with self.lock:
                self.call_depth = self.call_depth - 1

    def claim(self):
        with self.lock:
            if self.call_depth > 0:
                return False
            self.call_depth = self.call_depth + 1
            return True

    def release(self):
        with self.lock:
            self.call_depth = self.call_depth - 1

    def call_in_progress(self):
        with self.lock:
            return self.call_depth > 0

    def resolve_symbol(self, name):
        with self.calling():
            return self.gemstone_session.resolve_symbol(name)

    def execute_fetch_string(self, source, result_class, max_result_size):
        # ptongue decodes byte results itself; result_class is what a raw
        # GCI fetch would be told to answer, and is validated here only.
        if result_class is None:
            raise GemstoneApiError('A result class is required to fetch a string.')
        with self.calling():
            result = self.gemstone_session.execute(source)
            text = result.to_py
        if not isinstance(text, str):
            raise GemstoneApiError(
                'Expected a string result, got %s.' % type(text).__name__
            )
        return text[:max_result_size]

    def new_string(self, value):
        with self.calling():
            return self.gemstone_session.from_py(value)

    def new_symbol(self, value):
        with self.calling():
            return self.gemstone_session.from_py(value).asSymbol()

    def perform(self, receiver, selector, *arguments):
        with self.calling():
            return receiver.perform(selector, *arguments)

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
        if override_selector is not None or compile_flags:
            raise GemstoneApiError(
                'Override selectors and compile flags are not supported.'
            )
        with self.calling():
            if symbol_list is None:
                symbol_list = self.gemstone_session.execute(
                    'System myUserProfile symbolList'
                )
            return behavior.compileMethod_dictionaries_category_environmentId(
                source,
                symbol_list,
                category,
                environment_id,
            )

    def clear_stack(self, context):
        with self.calling():
            context.terminate()

    def begin(self):
        with self.calling():
            self.gemstone_session.begin()

    def commit(self):
        with self.calling():
            self.gemstone_session.commit()

    def abort(self):
        with self.calling():
            self.gemstone_session.abort()

    def log_out(self):
        close_session(self.gemstone_session)
