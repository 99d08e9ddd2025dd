from reahl.stonebrowser.gemstone.browser import GemstoneBrowserSession
from reahl.stonebrowser.gemstone.browser import class_environments
from reahl.stonebrowser.gemstone.browser import compile_method
from reahl.stonebrowser.gemstone.browser import dictionary_entries
from reahl.stonebrowser.gemstone.browser import dictionary_names
from reahl.stonebrowser.gemstone.browser import implementors_of
from reahl.stonebrowser.gemstone.browser import method_source
from reahl.stonebrowser.gemstone.browser import senders_of
from reahl.stonebrowser.gemstone.protocol import BrowserQueryError
from reahl.stonebrowser.gemstone.protocol import SessionBusyError
from reahl.stonebrowser.gemstone.protocol import exclusive_use_of
from reahl.stonebrowser.gemstone.protocol import execute_fetch_string
from reahl.stonebrowser.gemstone.session import DomainException
from reahl.stonebrowser.gemstone.session import GemstoneSessionHandle
from reahl.stonebrowser.gemstone.session import close_session
from reahl.stonebrowser.gemstone.session import create_linked_session
from reahl.stonebrowser.gemstone.session import create_rpc_session
from reahl.stonebrowser.gemstone.session import gemstone_error_payload
from reahl.stonebrowser.gemstone.session import session_summary

__all__ = [
    'BrowserQueryError',
    'DomainException',
    'GemstoneBrowserSession',
    'GemstoneSessionHandle',
    'SessionBusyError',
    'class_environments',
    'close_session',
    'compile_method',
    'create_linked_session',
    'create_rpc_session',
    'dictionary_entries',
    'dictionary_names',
    'exclusive_use_of',
    'execute_fetch_string',
    'gemstone_error_payload',
    'implementors_of',
    'method_source',
    'senders_of',
    'session_summary',
]
