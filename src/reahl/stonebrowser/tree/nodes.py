"""The nodes of the browser tree.

A node never holds its children. It carries only the path (session,
dictionary, class, side, category) needed to compute them again, so two
nodes with the same fields are the same node.
"""

ALL_CATEGORY = '** ALL **'
OTHER_GLOBALS_CATEGORY = '** OTHER GLOBALS **'


class BrowserNode:
    kind = None
    field_names = ()
    is_leaf = False

    def __init__(self, **field_values):
        unexpected_names = set(field_values) - set(self.field_names)
        missing_names = set(self.field_names) - set(field_values)
        if unexpected_names or missing_names:
            raise TypeError(
                '%s expects fields %s' % (type(self).__name__, ', '.join(self.field_names))
            )
        for name, value in field_values.items():
            setattr(self, name, value)

    def field_values(self):
        return tuple(getattr(self, name) for name in self.field_names)

    def __eq__(self, other):
        return type(self) is type(other) and self.field_values() == other.field_values()

    def __hash__(self):
        return hash((self.kind,) + self.field_values())

    def __repr__(self):
        return '%s(%s)' % (
            type(self).__name__,
            ', '.join(
                '%s=%r' % (name, value)
                for name, value in zip(self.field_names, self.field_values())
            ),
        )


class DictionaryNode(BrowserNode):
    kind = 'dictionary'
    field_names = ('session_id', 'dictionary_index', 'name')


class ClassCategoryNode(BrowserNode):
    kind = 'class_category'
    field_names = ('session_id', 'dictionary_index', 'dictionary_name', 'name')


class ClassNode(BrowserNode):
    kind = 'class'
    field_names = ('session_id', 'dictionary_index', 'dictionary_name', 'name')


class DefinitionNode(BrowserNode):
    kind = 'definition'
    field_names = ('session_id', 'dictionary_index', 'dictionary_name', 'class_name')
    is_leaf = True


class CommentNode(BrowserNode):
    kind = 'comment'
    field_names = ('session_id', 'dictionary_index', 'dictionary_name', 'class_name')
    is_leaf = True


class SideNode(BrowserNode):
    kind = 'side'
    field_names = (
        'session_id',
        'dictionary_index',
        'dictionary_name',
        'class_name',
        'is_meta',
        'environment_id',
    )


class CategoryNode(BrowserNode):
    kind = 'category'
    field_names = SideNode.field_names + ('name',)


class MethodNode(BrowserNode):
    kind = 'method'
    field_names = SideNode.field_names + ('category', 'selector')
    is_leaf = True


class GlobalNode(BrowserNode):
    kind = 'global'
    field_names = ('session_id', 'dictionary_index', 'dictionary_name', 'name')
    is_leaf = True


NODE_CLASSES = (
    DictionaryNode,
    ClassCategoryNode,
    ClassNode,
    DefinitionNode,
    CommentNode,
    SideNode,
    CategoryNode,
    MethodNode,
    GlobalNode,
)
NODE_CLASSES_BY_KIND = {node_class.kind: node_class for node_class in NODE_CLASSES}
NODE_KINDS = frozenset(NODE_CLASSES_BY_KIND)


def node_as_dict(node):
    node_dict = {'kind': node.kind}
    node_dict.update(zip(node.field_names, node.field_values()))
    return node_dict


def node_from_dict(node_dict):
    field_values = dict(node_dict)
    kind = field_values.pop('kind', None)
    if kind not in NODE_CLASSES_BY_KIND:
        raise ValueError('Unknown node kind: %r' % (kind,))
    return NODE_CLASSES_BY_KIND[kind](**field_values)
