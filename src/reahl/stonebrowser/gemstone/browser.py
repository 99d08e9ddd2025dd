from reahl.ptongue import GemstoneApiError
from reahl.ptongue import GemstoneError

from reahl.stonebrowser.gemstone import smalltalk
from reahl.stonebrowser.gemstone.diagnostics import log_error
from reahl.stonebrowser.gemstone.diagnostics import log_gci_call
from reahl.stonebrowser.gemstone.diagnostics import log_gci_result
from reahl.stonebrowser.gemstone.diagnostics import log_query
from reahl.stonebrowser.gemstone.diagnostics import log_result
from reahl.stonebrowser.gemstone.protocol import exclusive_use_of
from reahl.stonebrowser.gemstone.protocol import execute_fetch_string
from reahl.stonebrowser.gemstone.protocol import remote_failure
from reahl.stonebrowser.gemstone.records import parse_all_class_names
from reahl.stonebrowser.gemstone.records import parse_class_environments
from reahl.stonebrowser.gemstone.records import parse_class_hierarchy
from reahl.stonebrowser.gemstone.records import parse_dictionary_entries
from reahl.stonebrowser.gemstone.records import parse_method_search_results
from reahl.stonebrowser.gemstone.records import split_lines


class GemstoneBrowserSession:
    def __init__(self, session, result_classes=None):
        self.session = session
        self.result_classes = result_classes

    def run_query(self, label, code):
        return execute_fetch_string(
            self.session,
            label,
            code,
            result_classes=self.result_classes,
        )

    def receiver_label(self, class_name, is_meta):
        return '%s class' % class_name if is_meta else class_name

    def dictionary_names(self):
        return split_lines(
            self.run_query('dictionary_names', smalltalk.dictionary_names_source())
        )

    def class_names(self, dictionary_name):
        return sorted(
            split_lines(
                self.run_query(
                    'class_names(%s)' % dictionary_name,
                    smalltalk.class_names_source(dictionary_name),
                )
            )
        )

    def dictionary_entries(self, dictionary_index):
        return parse_dictionary_entries(
            self.run_query(
                'dictionary_entries(dictionary_index: %s)' % dictionary_index,
                smalltalk.dictionary_entries_source(dictionary_index),
            )
        )

    def method_categories(self, class_name, is_meta):
        return split_lines(
            self.run_query(
                'method_categories(%s)' % self.receiver_label(class_name, is_meta),
                smalltalk.method_categories_source(class_name, is_meta),
            )
        )

    def method_selectors(self, class_name, is_meta, category):
        return split_lines(
            self.run_query(
                "method_selectors(%s, '%s')" % (
                    self.receiver_label(class_name, is_meta),
                    category,
                ),
                smalltalk.method_selectors_source(class_name, is_meta, category),
            )
        )

    def class_environments(self, dictionary_index, class_name, max_environment):
        return parse_class_environments(
            self.run_query(
                'class_environments(%s, %s)' % (class_name, max_environment),
                smalltalk.class_environments_source(
                    dictionary_index,
                    class_name,
                    max_environment,
                ),
            )
        )

    def method_source(self, class_name, is_meta, selector, environment_id=0):
        label = 'method_source(%s>>#%s' % (
            self.receiver_label(class_name, is_meta),
            selector,
        )
        if environment_id:
            label += ' env:%s' % environment_id
        return self.run_query(
            label + ')',
            smalltalk.method_source_source(
                class_name,
                is_meta,
                selector,
                environment_id,
            ),
        )

    def class_definition(self, class_name):
        return self.run_query(
            'class_definition(%s)' % class_name,
            smalltalk.class_definition_source(class_name),
        )

    def class_comment(self, class_name):
        return self.run_query(
            'class_comment(%s)' % class_name,
            smalltalk.class_comment_source(class_name),
        )

    def all_class_names(self):
        return parse_all_class_names(
            self.run_query('all_class_names', smalltalk.all_class_names_source())
        )

    def search_method_source(self, term, ignore_case=True):
        return parse_method_search_results(
            self.run_query(
                "search_method_source('%s')" % term,
                smalltalk.search_method_source_source(term, ignore_case),
            )
        )

    def senders_of(self, selector, environment_id=0):
        return parse_method_search_results(
            self.run_query(
                'senders_of(#%s, env:%s)' % (selector, environment_id),
                smalltalk.senders_of_source(selector, environment_id),
            )
        )

    def implementors_of(self, selector, environment_id=0):
        return parse_method_search_results(
            self.run_query(
                'implementors_of(#%s, env:%s)' % (selector, environment_id),
                smalltalk.implementors_of_source(selector, environment_id),
            )
        )

    def class_hierarchy(self, class_name):
        return parse_class_hierarchy(
            self.run_query(
                'class_hierarchy(%s)' % class_name,
                smalltalk.class_hierarchy_source(class_name),
            )
        )

    def compile_class_definition(self, source):
        return self.run_query(
            'compile_class_definition',
            smalltalk.compile_class_definition_source(source),
        )

    def set_class_comment(self, class_name, comment):
        self.run_query(
            'set_class_comment(%s)' % class_name,
            smalltalk.set_class_comment_source(class_name, comment),
        )

    def delete_method(self, class_name, is_meta, selector):
        self.run_query(
            'delete_method(%s>>#%s)' % (
                self.receiver_label(class_name, is_meta),
                selector,
            ),
            smalltalk.delete_method_source(class_name, is_meta, selector),
        )

    def recategorize_method(self, class_name, is_meta, selector, new_category):
        self.run_query(
            "recategorize_method(%s>>#%s -> '%s')" % (
                self.receiver_label(class_name, is_meta),
                selector,
                new_category,
            ),
            smalltalk.recategorize_method_source(
                class_name,
                is_meta,
                selector,
                new_category,
            ),
        )

    def rename_category(self, class_name, is_meta, old_category, new_category):
        self.run_query(
            "rename_category(%s, '%s' -> '%s')" % (
                self.receiver_label(class_name, is_meta),
                old_category,
                new_category,
            ),
            smalltalk.rename_category_source(
                class_name,
                is_meta,
                old_category,
                new_category,
            ),
        )

    def delete_class(self, dictionary_name, class_name):
        self.run_query(
            'delete_class(%s, %s)' % (dictionary_name, class_name),
            smalltalk.delete_class_source(dictionary_name, class_name),
        )

    def move_class(self, source_dictionary_name, destination_dictionary_name, class_name):
        self.run_query(
            'move_class(%s: %s -> %s)' % (
                class_name,
                source_dictionary_name,
                destination_dictionary_name,
            ),
            smalltalk.move_class_source(
                source_dictionary_name,
                destination_dictionary_name,
                class_name,
            ),
        )

    def add_dictionary(self, dictionary_name):
        self.run_query(
            'add_dictionary(%s)' % dictionary_name,
            smalltalk.add_dictionary_source(dictionary_name),
        )

    def move_dictionary_up(self, dictionary_name):
        self.run_query(
            'move_dictionary_up(%s)' % dictionary_name,
            smalltalk.move_dictionary_up_source(dictionary_name),
        )

    def move_dictionary_down(self, dictionary_name):
        self.run_query(
            'move_dictionary_down(%s)' % dictionary_name,
            smalltalk.move_dictionary_down_source(dictionary_name),
        )

    def begin_transaction(self):
        self.transaction_control('begin', self.session.begin)

    def commit_transaction(self):
        self.transaction_control('commit', self.session.commit)

    def abort_transaction(self):
        self.transaction_control('abort', self.session.abort)

    def transaction_control(self, action_name, action):
        session_id = self.session.session_id
        log_query(
            session_id,
            '%s_transaction' % action_name,
            'System %sTransaction' % action_name,
        )
        with exclusive_use_of(self.session):
            log_gci_call(session_id, action_name, {})
            self.remote_step(action, 'Cannot %s the transaction' % action_name)
        log_gci_result(session_id, action_name, {'ok': True})

    def compile_method(
        self,
        class_name,
        is_meta,
        category,
        source,
        environment_id=0,
    ):
        log_query(
            self.session.session_id,
            "compile_method(%s, '%s')" % (
                self.receiver_label(class_name, is_meta),
                category,
            ),
            source,
        )
        with exclusive_use_of(self.session):
            return self.compile_method_steps(
                class_name,
                is_meta,
                category,
                source,
                environment_id,
            )

    def compile_method_steps(self, class_name, is_meta, category, source, environment_id):
        session_id = self.session.session_id
        behavior = self.remote_step(
            lambda: self.session.resolve_symbol(class_name),
            'Cannot resolve %s' % class_name,
        )
        if is_meta:
            behavior = self.remote_step(
                lambda: self.session.perform(behavior, 'class'),
                'Cannot get metaclass for %s' % class_name,
            )
        source_string = self.remote_step(
            lambda: self.session.new_string(source),
            'Cannot create source string',
        )
        category_symbol = self.remote_step(
            lambda: self.session.new_symbol(category),
            'Cannot create category symbol',
        )

        log_gci_call(
            session_id,
            'compile_method',
            {
                'source': source_string,
                'behavior': behavior,
                'category': category_symbol,
                'symbol_list': None,
                'override_selector': None,
                'compile_flags': 0,
                'environment_id': environment_id,
            },
        )
        try:
            compiled_method = self.session.compile_method(
                source_string,
                behavior,
                category_symbol,
                symbol_list=None,
                override_selector=None,
                compile_flags=0,
                environment_id=environment_id,
            )
        except GemstoneError as error:
            log_gci_result(
                session_id,
                'compile_method',
                {'error': str(error), 'number': error.number},
            )
            self.clear_stack_after(error)
            raise remote_failure(
                self.session,
                error,
                'Compile error %s' % error.number,
            )
        except GemstoneApiError as error:
            raise remote_failure(self.session, error, 'Compile error 0')

        log_result(session_id, 'Compiled -> %r' % (compiled_method,))
        return compiled_method

    def remote_step(self, action, failure_message):
        try:
            return action()
        except (GemstoneError, GemstoneApiError) as error:
            raise remote_failure(self.session, error, failure_message)

    def clear_stack_after(self, error):
        context = error.context
        if context is None:
            return
        try:
            self.session.clear_stack(context)
        except (GemstoneError, GemstoneApiError) as clear_error:
            log_error(
                self.session.session_id,
                'Could not clear stack after failed compile: %s' % clear_error,
            )


def dictionary_names(session):
    return GemstoneBrowserSession(session).dictionary_names()


def dictionary_entries(session, dictionary_index):
    return GemstoneBrowserSession(session).dictionary_entries(dictionary_index)


def class_environments(session, dictionary_index, class_name, max_environment):
    return GemstoneBrowserSession(session).class_environments(
        dictionary_index,
        class_name,
        max_environment,
    )


def method_source(session, class_name, is_meta, selector, environment_id=0):
    return GemstoneBrowserSession(session).method_source(
        class_name,
        is_meta,
        selector,
        environment_id=environment_id,
    )


def senders_of(session, selector, environment_id=0):
    return GemstoneBrowserSession(session).senders_of(
        selector,
        environment_id=environment_id,
    )


def implementors_of(session, selector, environment_id=0):
    return GemstoneBrowserSession(session).implementors_of(
        selector,
        environment_id=environment_id,
    )


def compile_method(
    session,
    class_name,
    is_meta,
    category,
    source,
    environment_id=0,
):
    return GemstoneBrowserSession(session).compile_method(
        class_name,
        is_meta,
        category,
        source,
        environment_id=environment_id,
    )
