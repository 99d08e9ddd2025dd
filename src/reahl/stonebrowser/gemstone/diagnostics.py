import logging


# Source text and results may hold sensitive data: they are only logged
# when this logger is enabled for DEBUG.
gci_logger = logging.getLogger('reahl.stonebrowser.gci')


def log_query(session_id, label, code):
    gci_logger.debug('[%s] query %s:\n%s', session_id, label, code)


def log_result(session_id, data):
    gci_logger.debug('[%s] result (%s chars):\n%s', session_id, len(data), data)


def log_error(session_id, message):
    gci_logger.warning('[%s] error: %s', session_id, message)


def log_gci_call(session_id, function_name, arguments):
    gci_logger.debug(
        '[%s] call %s(%s)',
        session_id,
        function_name,
        formatted_arguments(arguments),
    )


def log_gci_result(session_id, function_name, results):
    gci_logger.debug(
        '[%s] return %s -> %s',
        session_id,
        function_name,
        formatted_arguments(results),
    )


def formatted_arguments(arguments):
    return ', '.join(
        '%s=%r' % (name, value) for name, value in arguments.items()
    )
