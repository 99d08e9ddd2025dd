from urllib.parse import parse_qs
from urllib.parse import quote
from urllib.parse import unquote
from urllib.parse import urlsplit

LOCATOR_SCHEME = 'gemstone'


class TreeItem:
    def __init__(
        self,
        label,
        icon,
        collapsible,
        context_value,
        locator=None,
        tooltip=None,
    ):
        self.label = label
        self.icon = icon
        self.collapsible = collapsible
        self.context_value = context_value
        self.locator = locator
        self.tooltip = tooltip

    def as_dict(self):
        return {
            'label': self.label,
            'icon': self.icon,
            'collapsible': self.collapsible,
            'context_value': self.context_value,
            'locator': self.locator,
            'tooltip': self.tooltip,
        }


class DocumentLocation:
    """What a locator addresses: a class definition, a class comment or a method."""

    def __init__(
        self,
        session_id,
        dictionary_name,
        class_name,
        document_kind,
        is_meta=False,
        category=None,
        selector=None,
        environment_id=0,
    ):
        self.session_id = session_id
        self.dictionary_name = dictionary_name
        self.class_name = class_name
        self.document_kind = document_kind
        self.is_meta = is_meta
        self.category = category
        self.selector = selector
        self.environment_id = environment_id


def side_name(is_meta):
    return 'class' if is_meta else 'instance'


def side_label(node, max_environment):
    if max_environment > 0:
        return '%s %s' % (side_name(node.is_meta), node.environment_id)
    return side_name(node.is_meta)


def encoded(value):
    return quote(str(value), safe='')


def class_locator(node, document_kind):
    return '%s://%s/%s/%s/%s' % (
        LOCATOR_SCHEME,
        encoded(node.session_id),
        encoded(node.dictionary_name),
        encoded(node.class_name),
        document_kind,
    )


def method_locator(node):
    locator = '%s://%s/%s/%s/%s/%s/%s' % (
        LOCATOR_SCHEME,
        encoded(node.session_id),
        encoded(node.dictionary_name),
        encoded(node.class_name),
        side_name(node.is_meta),
        encoded(node.category),
        encoded(node.selector),
    )
    if node.environment_id > 0:
        locator += '?env=%s' % node.environment_id
    return locator


def node_locator(node):
    if node.kind in ('definition', 'comment'):
        return class_locator(node, node.kind)
    if node.kind == 'method':
        return method_locator(node)
    return None


def parse_locator(locator):
    parts = urlsplit(locator)
    if parts.scheme != LOCATOR_SCHEME:
        raise ValueError('Not a %s locator: %s' % (LOCATOR_SCHEME, locator))
    path_segments = [unquote(segment) for segment in parts.path.split('/')[1:]]
    session_id = unquote(parts.netloc)
    if len(path_segments) == 3 and path_segments[2] in ('definition', 'comment'):
        dictionary_name, class_name, document_kind = path_segments
        return DocumentLocation(session_id, dictionary_name, class_name, document_kind)
    if len(path_segments) == 5 and path_segments[2] in ('instance', 'class'):
        dictionary_name, class_name, side, category, selector = path_segments
        environment_values = parse_qs(parts.query).get('env', ['0'])
        return DocumentLocation(
            session_id,
            dictionary_name,
            class_name,
            'method',
            is_meta=side == 'class',
            category=category,
            selector=selector,
            environment_id=int(environment_values[0], 10),
        )
    raise ValueError('Unrecognised %s locator: %s' % (LOCATOR_SCHEME, locator))


def tree_item_for(node, max_environment):
    collapsible = not node.is_leaf
    if node.kind == 'dictionary':
        return TreeItem(node.name, 'symbol-namespace', collapsible, 'gemstoneDictionary')
    if node.kind == 'class_category':
        return TreeItem(node.name, 'symbol-folder', collapsible, 'gemstoneClassCategory')
    if node.kind == 'class':
        return TreeItem(node.name, 'symbol-class', collapsible, 'gemstoneClass')
    if node.kind == 'definition':
        return TreeItem(
            'definition',
            'symbol-structure',
            collapsible,
            'gemstoneDefinition',
            locator=node_locator(node),
            tooltip='%s definition' % node.class_name,
        )
    if node.kind == 'comment':
        return TreeItem(
            'comment',
            'comment',
            collapsible,
            'gemstoneComment',
            locator=node_locator(node),
            tooltip='%s comment' % node.class_name,
        )
    if node.kind == 'side':
        return TreeItem(
            side_label(node, max_environment),
            'symbol-interface' if node.is_meta else 'symbol-method',
            collapsible,
            'gemstoneSide',
        )
    if node.kind == 'category':
        return TreeItem(node.name, 'symbol-folder', collapsible, 'gemstoneCategory')
    if node.kind == 'method':
        return TreeItem(
            node.selector,
            'symbol-method',
            collapsible,
            'gemstoneMethod',
            locator=node_locator(node),
            tooltip='%s%s>>#%s' % (
                node.class_name,
                ' class' if node.is_meta else '',
                node.selector,
            ),
        )
    if node.kind == 'global':
        return TreeItem(
            node.name,
            'symbol-variable',
            collapsible,
            'gemstoneGlobal',
            tooltip='%s -> %s' % (node.dictionary_name, node.name),
        )
    raise ValueError('Unknown node kind: %r' % (node.kind,))
