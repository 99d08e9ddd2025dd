from reahl.stonebrowser.tree.cache import BrowserCache
from reahl.stonebrowser.tree.nodes import ALL_CATEGORY
from reahl.stonebrowser.tree.nodes import OTHER_GLOBALS_CATEGORY
from reahl.stonebrowser.tree.nodes import node_as_dict
from reahl.stonebrowser.tree.nodes import node_from_dict
from reahl.stonebrowser.tree.provider import BrowserTreeProvider

__all__ = [
    'ALL_CATEGORY',
    'BrowserCache',
    'BrowserTreeProvider',
    'OTHER_GLOBALS_CATEGORY',
    'node_as_dict',
    'node_from_dict',
]
