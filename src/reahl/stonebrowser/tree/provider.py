import logging

from reahl.ptongue import GemstoneApiError
from reahl.ptongue import GemstoneError

from reahl.stonebrowser.gemstone.browser import GemstoneBrowserSession
from reahl.stonebrowser.gemstone.session import DomainException
from reahl.stonebrowser.sessions import Subscribers
from reahl.stonebrowser.settings import BrowserSettings
from reahl.stonebrowser.tree.cache import BrowserCache
from reahl.stonebrowser.tree.nodes import ALL_CATEGORY
from reahl.stonebrowser.tree.nodes import CategoryNode
from reahl.stonebrowser.tree.nodes import ClassCategoryNode
from reahl.stonebrowser.tree.nodes import ClassNode
from reahl.stonebrowser.tree.nodes import CommentNode
from reahl.stonebrowser.tree.nodes import DefinitionNode
from reahl.stonebrowser.tree.nodes import DictionaryNode
from reahl.stonebrowser.tree.nodes import GlobalNode
from reahl.stonebrowser.tree.nodes import MethodNode
from reahl.stonebrowser.tree.nodes import OTHER_GLOBALS_CATEGORY
from reahl.stonebrowser.tree.nodes import SideNode
from reahl.stonebrowser.tree.presentation import tree_item_for


def log_notification(message):
    logging.getLogger(__name__).warning(message)


class BrowserTreeProvider:
    """Presents the class library of the selected session as a lazily expanded tree.

    Children are computed from a node's own fields; the two expensive
    aggregations (class categories per dictionary, selectors per class) are
    kept in a :class:`BrowserCache` until :meth:`refresh` is called, which also
    happens whenever a different session is selected.

    Remote failures while expanding a node are reported through
    ``notifier`` and the node shows no children.
    """

    def __init__(
        self,
        session_selection,
        settings=None,
        cache=None,
        notifier=None,
        queries_factory=GemstoneBrowserSession,
    ):
        self.session_selection = session_selection
        self.settings = settings or BrowserSettings()
        self.cache = cache or BrowserCache()
        self.notifier = notifier or log_notification
        self.queries_factory = queries_factory
        self.tree_changed_subscribers = Subscribers()
        self.dispatch_table = {
            'dictionary': self.class_categories_of,
            'class_category': self.classes_in_category,
            'class': self.sides_of,
            'side': self.categories_of,
            'category': self.methods_in,
            'definition': self.no_children,
            'comment': self.no_children,
            'method': self.no_children,
            'global': self.no_children,
        }
        session_selection.subscribe_selection_changed(self.handle_selection_changed)

    def handle_selection_changed(self, session_id=None):
        self.refresh()

    def refresh(self):
        self.cache.clear()
        self.tree_changed_subscribers.notify(node=None)

    def subscribe_tree_changed(self, callback):
        self.tree_changed_subscribers.subscribe(callback)

    def get_tree_item(self, node):
        return tree_item_for(node, self.settings.max_environment)

    def get_children(self, node=None):
        session = self.session_selection.selected_session()
        if session is None:
            return []
        try:
            if node is None:
                return self.dictionaries_in(session)
            return self.dispatch_table[node.kind](session, node)
        except (DomainException, GemstoneError, GemstoneApiError) as error:
            self.notifier('Browser query failed: %s' % error)
            return []

    def node_content(self, node):
        session = self.session_selection.selected_session()
        if session is None:
            raise DomainException('No session is selected.')
        queries = self.queries_factory(session)
        if node.kind == 'definition':
            return queries.class_definition(node.class_name)
        if node.kind == 'comment':
            return queries.class_comment(node.class_name)
        if node.kind == 'method':
            return queries.method_source(
                node.class_name,
                node.is_meta,
                node.selector,
                environment_id=node.environment_id,
            )
        raise DomainException('%s nodes have no content.' % node.kind)

    def no_children(self, session, node):
        return []

    def dictionaries_in(self, session):
        dictionary_names = self.queries_factory(session).dictionary_names()
        return [
            DictionaryNode(
                session_id=session.session_id,
                dictionary_index=index,
                name=name,
            )
            for index, name in enumerate(dictionary_names, start=1)
        ]

    def class_category_entry(self, session, dictionary_node):
        return self.cache.class_category_entry(
            dictionary_node.session_id,
            dictionary_node.dictionary_index,
            lambda: self.queries_factory(session).dictionary_entries(
                dictionary_node.dictionary_index
            ),
        )

    def class_category_node(self, dictionary_node, name):
        return ClassCategoryNode(
            session_id=dictionary_node.session_id,
            dictionary_index=dictionary_node.dictionary_index,
            dictionary_name=dictionary_node.name,
            name=name,
        )

    def class_categories_of(self, session, dictionary_node):
        entry = self.class_category_entry(session, dictionary_node)
        nodes = [self.class_category_node(dictionary_node, ALL_CATEGORY)]
        nodes.extend(
            self.class_category_node(dictionary_node, category_name)
            for category_name in entry.category_names()
        )
        if entry.globals:
            nodes.append(
                self.class_category_node(dictionary_node, OTHER_GLOBALS_CATEGORY)
            )
        return nodes

    def classes_in_category(self, session, category_node):
        entry = self.cache.cached_class_category_entry(
            category_node.session_id,
            category_node.dictionary_index,
        )
        if entry is None:
            return []

        if category_node.name == OTHER_GLOBALS_CATEGORY:
            return [
                GlobalNode(
                    session_id=category_node.session_id,
                    dictionary_index=category_node.dictionary_index,
                    dictionary_name=category_node.dictionary_name,
                    name=name,
                )
                for name in entry.globals
            ]

        if category_node.name == ALL_CATEGORY:
            class_names = entry.all_class_names()
        else:
            class_names = entry.class_names_in(category_node.name)
        return [
            ClassNode(
                session_id=category_node.session_id,
                dictionary_index=category_node.dictionary_index,
                dictionary_name=category_node.dictionary_name,
                name=name,
            )
            for name in class_names
        ]

    def sides_of(self, session, class_node):
        max_environment = self.settings.max_environment
        class_fields = dict(
            session_id=class_node.session_id,
            dictionary_index=class_node.dictionary_index,
            dictionary_name=class_node.dictionary_name,
            class_name=class_node.name,
        )
        nodes = [DefinitionNode(**class_fields), CommentNode(**class_fields)]
        for is_meta in (False, True):
            nodes.extend(
                SideNode(is_meta=is_meta, environment_id=environment_id, **class_fields)
                for environment_id in range(max_environment + 1)
            )
        return nodes

    def environment_entry(self, session, node):
        max_environment = self.settings.max_environment
        return self.cache.environment_entry(
            node.session_id,
            node.dictionary_index,
            node.class_name,
            max_environment,
            lambda: self.queries_factory(session).class_environments(
                node.dictionary_index,
                node.class_name,
                max_environment,
            ),
        )

    def side_fields(self, node):
        return dict(
            session_id=node.session_id,
            dictionary_index=node.dictionary_index,
            dictionary_name=node.dictionary_name,
            class_name=node.class_name,
            is_meta=node.is_meta,
            environment_id=node.environment_id,
        )

    def categories_of(self, session, side_node):
        entry = self.environment_entry(session, side_node)
        side_fields = self.side_fields(side_node)
        category_names = entry.category_names(
            side_node.is_meta,
            side_node.environment_id,
        )
        return [CategoryNode(name=ALL_CATEGORY, **side_fields)] + [
            CategoryNode(name=name, **side_fields) for name in category_names
        ]

    def methods_in(self, session, category_node):
        entry = self.environment_entry(session, category_node)
        side_fields = self.side_fields(category_node)
        if category_node.name == ALL_CATEGORY:
            categorized_selectors = entry.categorized_selectors(
                category_node.is_meta,
                category_node.environment_id,
            )
        else:
            categorized_selectors = [
                (selector, category_node.name)
                for selector in entry.selectors_in(
                    category_node.is_meta,
                    category_node.environment_id,
                    category_node.name,
                )
            ]
        return [
            MethodNode(category=category, selector=selector, **side_fields)
            for selector, category in categorized_selectors
        ]
