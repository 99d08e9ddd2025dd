import contextlib
import threading
import weakref

from reahl.ptongue import GemstoneApiError
from reahl.ptongue import GemstoneError

from reahl.stonebrowser.gemstone.diagnostics import log_error
from reahl.stonebrowser.gemstone.diagnostics import log_gci_call
from reahl.stonebrowser.gemstone.diagnostics import log_gci_result
from reahl.stonebrowser.gemstone.diagnostics import log_query
from reahl.stonebrowser.gemstone.diagnostics import log_result
from reahl.stonebrowser.gemstone.session import DomainException

MAX_RESULT_SIZE = 256 * 1024
RESULT_CLASS_NAME = 'Utf8'


class BrowserQueryError(DomainException):
    def __init__(self, message, gci_error_number=0):
        super().__init__(message)
        self.message = message
        self.gci_error_number = gci_error_number


class SessionBusyError(BrowserQueryError):
    def __init__(self):
        super().__init__(
            'Session is busy with another operation. '
            'Please wait or use a different session.'
        )


class ResultClassCache:
    """Remembers, per session handle, the class that fetched results are answered in.

    The class never changes for the life of a session, so entries are never
    invalidated; they disappear with the handle itself.
    """

    def __init__(self):
        self.lock = threading.Lock()
        self.result_classes = weakref.WeakKeyDictionary()

    def result_class_for(self, session):
        with self.lock:
            result_class = self.result_classes.get(session)
        if result_class is not None:
            return result_class
        try:
            result_class = session.resolve_symbol(RESULT_CLASS_NAME)
        except (GemstoneError, GemstoneApiError) as error:
            raise remote_failure(
                session,
                error,
                'Cannot resolve %s class' % RESULT_CLASS_NAME,
            )
        with self.lock:
            self.result_classes[session] = result_class
        return result_class


result_class_cache = ResultClassCache()


def gci_error_number(error):
    if isinstance(error, GemstoneError):
        return error.number
    return 0


def remote_failure(session, error, fallback_message):
    message = str(error) or fallback_message
    log_error(session.session_id, message)
    return BrowserQueryError(message, gci_error_number(error))


@contextlib.contextmanager
def exclusive_use_of(session):
    if not session.claim():
        busy_error = SessionBusyError()
        log_error(session.session_id, busy_error.message)
        raise busy_error
    try:
        yield session
    finally:
        session.release()


def execute_fetch_string(session, label, code, result_classes=None):
    result_classes = result_classes or result_class_cache
    log_query(session.session_id, label, code)
    with exclusive_use_of(session):
        result_class = result_classes.result_class_for(session)
        log_gci_call(
            session.session_id,
            'execute_fetch_string',
            {
                'source': code,
                'result_class': result_class,
                'max_result_size': MAX_RESULT_SIZE,
            },
        )
        try:
            data = session.execute_fetch_string(code, result_class, MAX_RESULT_SIZE)
        except (GemstoneError, GemstoneApiError) as error:
            log_gci_result(
                session.session_id,
                'execute_fetch_string',
                {'error': str(error), 'number': gci_error_number(error)},
            )
            raise remote_failure(
                session,
                error,
                'GCI error %s' % gci_error_number(error),
            )
    log_gci_result(
        session.session_id,
        'execute_fetch_string',
        {'bytes_returned': len(data), 'data': data},
    )
    log_result(session.session_id, data)
    return data
