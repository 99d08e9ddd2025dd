from reahl.ptongue import GemstoneApiError
from reahl.ptongue import GemstoneError

from reahl.stonebrowser.gemstone import BrowserQueryError
from reahl.stonebrowser.gemstone import DomainException
from reahl.stonebrowser.gemstone import GemstoneBrowserSession
from reahl.stonebrowser.gemstone import close_session
from reahl.stonebrowser.gemstone import create_linked_session
from reahl.stonebrowser.gemstone import create_rpc_session
from reahl.stonebrowser.gemstone import gemstone_error_payload
from reahl.stonebrowser.gemstone import session_summary
from reahl.stonebrowser.sessions import SessionSelection
from reahl.stonebrowser.settings import BrowserSettings
from reahl.stonebrowser.tree import BrowserTreeProvider
from reahl.stonebrowser.tree import node_as_dict
from reahl.stonebrowser.tree import node_from_dict
from reahl.stonebrowser.tree.presentation import parse_locator


def error_payload(error):
    if isinstance(error, GemstoneError):
        return gemstone_error_payload(error)
    if isinstance(error, BrowserQueryError):
        return {'message': error.message, 'number': error.gci_error_number}
    return {'message': str(error)}


def register_tools(
    mcp_server,
    session_selection=None,
    settings=None,
    allow_mutation=False,
    allow_compile=False,
):
    if session_selection is None:
        session_selection = SessionSelection()
    settings = settings or BrowserSettings()
    notifications = []
    tree_provider = BrowserTreeProvider(
        session_selection,
        settings=settings,
        notifier=notifications.append,
    )

    def failure_response(error, **details):
        response = {'ok': False, 'error': error_payload(error)}
        response.update(details)
        return response

    def disabled_tool_response(tool_name, switch):
        return {
            'ok': False,
            'error': {
                'message': (
                    '%s is disabled. '
                    'Start stonebrowser-mcp with %s to enable.'
                )
                % (tool_name, switch),
            },
        }

    def selected_browser_session():
        session = session_selection.selected_session()
        if session is None:
            raise DomainException('No session is selected. Call gs_connect first.')
        return GemstoneBrowserSession(session)

    def browser_session_for(session_id):
        if not session_selection.has_session(session_id):
            raise DomainException('Unknown session_id.')
        return GemstoneBrowserSession(session_selection.get_session(session_id))

    def run_mutation(tool_name, mutate, **details):
        if not allow_mutation:
            return disabled_tool_response(tool_name, '--allow-mutation')
        try:
            result = mutate(selected_browser_session())
        except (DomainException, GemstoneError, GemstoneApiError) as error:
            return failure_response(error, **details)
        tree_provider.refresh()
        response = {'ok': True}
        response.update(details)
        if result is not None:
            response['result'] = result
        return response

    def run_query(query, result_name, **details):
        try:
            result = query(selected_browser_session())
        except (DomainException, GemstoneError, GemstoneApiError) as error:
            return failure_response(error, **details)
        response = {'ok': True, result_name: result}
        response.update(details)
        return response

    def run_transaction_control(control):
        try:
            control(selected_browser_session())
        except (DomainException, GemstoneError, GemstoneApiError) as error:
            return failure_response(error)
        tree_provider.refresh()
        return {'ok': True}

    def method_search_payload(results):
        return {
            'methods': [result.as_dict() for result in results],
            'truncated': results.truncated,
            'total_count': results.total_count,
        }

    @mcp_server.tool()
    def gs_connect(
        connection_mode,
        gemstone_user_name='',
        gemstone_password='',
        stone_name='gs64stone',
        rpc_hostname='localhost',
        netldi_name='gemnetobject',
    ):
        try:
            if connection_mode == 'linked':
                gemstone_session = create_linked_session(
                    gemstone_user_name,
                    gemstone_password,
                    stone_name,
                )
            elif connection_mode == 'rpc':
                gemstone_session = create_rpc_session(
                    gemstone_user_name,
                    gemstone_password,
                    rpc_hostname,
                    stone_name,
                    netldi_name,
                )
            else:
                return {
                    'ok': False,
                    'error': {
                        'message': (
                            'Invalid connection_mode value. '
                            "Expected 'linked' or 'rpc'."
                        )
                    },
                }
        except DomainException as error:
            return failure_response(error)

        try:
            summary = session_summary(gemstone_session)
        except (GemstoneError, GemstoneApiError) as error:
            close_session(gemstone_session)
            return failure_response(error)

        session_id = session_selection.add_session(
            gemstone_session,
            {'connection_mode': connection_mode},
        )
        if session_selection.selected_session() is None:
            session_selection.select_session(session_id)
        return {
            'ok': True,
            'session_id': session_id,
            'connection_mode': connection_mode,
            'session': summary,
            'selected': session_selection.selected_session_id == session_id,
        }

    @mcp_server.tool()
    def gs_disconnect(session_id):
        if not session_selection.has_session(session_id):
            return {'ok': False, 'error': {'message': 'Unknown session_id.'}}
        session_handle = session_selection.remove_session(session_id)
        try:
            session_handle.log_out()
        except (GemstoneError, GemstoneApiError) as error:
            return failure_response(error, session_id=session_id)
        return {'ok': True, 'session_id': session_id}

    @mcp_server.tool()
    def gs_list_sessions():
        return {
            'ok': True,
            'sessions': [
                {
                    'session_id': session_id,
                    'metadata': session_selection.get_metadata(session_id),
                    'selected': session_selection.selected_session_id == session_id,
                }
                for session_id in session_selection.session_ids()
            ],
        }

    @mcp_server.tool()
    def gs_select_session(session_id):
        if not session_selection.has_session(session_id):
            return {'ok': False, 'error': {'message': 'Unknown session_id.'}}
        session_selection.select_session(session_id)
        return {'ok': True, 'session_id': session_id}

    @mcp_server.tool()
    def gs_browse(node=None):
        try:
            parent = None if node is None else node_from_dict(node)
        except (TypeError, ValueError) as error:
            return failure_response(error)
        del notifications[:]
        children = tree_provider.get_children(parent)
        response = {
            'ok': not notifications,
            'children': [
                {
                    'node': node_as_dict(child),
                    'item': tree_provider.get_tree_item(child).as_dict(),
                }
                for child in children
            ],
        }
        if notifications:
            response['error'] = {'message': '; '.join(notifications)}
        return response

    @mcp_server.tool()
    def gs_refresh():
        tree_provider.refresh()
        return {'ok': True}

    @mcp_server.tool()
    def gs_get_content(node=None, locator=None):
        try:
            if locator is not None:
                location = parse_locator(locator)
                browser_session = browser_session_for(location.session_id)
                if location.document_kind == 'definition':
                    content = browser_session.class_definition(location.class_name)
                elif location.document_kind == 'comment':
                    content = browser_session.class_comment(location.class_name)
                else:
                    content = browser_session.method_source(
                        location.class_name,
                        location.is_meta,
                        location.selector,
                        environment_id=location.environment_id,
                    )
            elif node is not None:
                content = tree_provider.node_content(node_from_dict(node))
            else:
                raise DomainException('Either node or locator is required.')
        except (
            DomainException,
            GemstoneError,
            GemstoneApiError,
            TypeError,
            ValueError,
        ) as error:
            return failure_response(error)
        return {'ok': True, 'content': content}

    @mcp_server.tool()
    def gs_list_classes(dictionary_name):
        return run_query(
            lambda browser_session: browser_session.class_names(dictionary_name),
            'classes',
            dictionary_name=dictionary_name,
        )

    @mcp_server.tool()
    def gs_list_method_categories(class_name, is_meta=False):
        return run_query(
            lambda browser_session: browser_session.method_categories(
                class_name,
                is_meta,
            ),
            'categories',
            class_name=class_name,
        )

    @mcp_server.tool()
    def gs_list_methods(class_name, category, is_meta=False):
        return run_query(
            lambda browser_session: browser_session.method_selectors(
                class_name,
                is_meta,
                category,
            ),
            'selectors',
            class_name=class_name,
            category=category,
        )

    @mcp_server.tool()
    def gs_all_class_names():
        return run_query(
            lambda browser_session: [
                entry.as_dict() for entry in browser_session.all_class_names()
            ],
            'classes',
        )

    @mcp_server.tool()
    def gs_class_hierarchy(class_name):
        return run_query(
            lambda browser_session: [
                entry.as_dict()
                for entry in browser_session.class_hierarchy(class_name)
            ],
            'hierarchy',
            class_name=class_name,
        )

    @mcp_server.tool()
    def gs_search_method_source(term, ignore_case=True):
        return run_query(
            lambda browser_session: method_search_payload(
                browser_session.search_method_source(term, ignore_case)
            ),
            'result',
            term=term,
        )

    @mcp_server.tool()
    def gs_senders_of(selector, environment_id=0):
        return run_query(
            lambda browser_session: method_search_payload(
                browser_session.senders_of(selector, environment_id)
            ),
            'result',
            selector=selector,
        )

    @mcp_server.tool()
    def gs_implementors_of(selector, environment_id=0):
        return run_query(
            lambda browser_session: method_search_payload(
                browser_session.implementors_of(selector, environment_id)
            ),
            'result',
            selector=selector,
        )

    @mcp_server.tool()
    def gs_compile_method(
        class_name,
        source,
        is_meta=False,
        category='as yet unclassified',
        environment_id=0,
    ):
        if not allow_compile:
            return disabled_tool_response('gs_compile_method', '--allow-compile')
        try:
            selected_browser_session().compile_method(
                class_name,
                is_meta,
                category,
                source,
                environment_id=environment_id,
            )
        except (DomainException, GemstoneError, GemstoneApiError) as error:
            return failure_response(error, class_name=class_name)
        tree_provider.refresh()
        return {'ok': True, 'class_name': class_name, 'category': category}

    @mcp_server.tool()
    def gs_compile_class_definition(source):
        return run_mutation(
            'gs_compile_class_definition',
            lambda browser_session: browser_session.compile_class_definition(source),
        )

    @mcp_server.tool()
    def gs_set_class_comment(class_name, comment):
        return run_mutation(
            'gs_set_class_comment',
            lambda browser_session: browser_session.set_class_comment(
                class_name,
                comment,
            ),
            class_name=class_name,
        )

    @mcp_server.tool()
    def gs_delete_method(class_name, selector, is_meta=False):
        return run_mutation(
            'gs_delete_method',
            lambda browser_session: browser_session.delete_method(
                class_name,
                is_meta,
                selector,
            ),
            class_name=class_name,
            selector=selector,
        )

    @mcp_server.tool()
    def gs_recategorize_method(class_name, selector, new_category, is_meta=False):
        return run_mutation(
            'gs_recategorize_method',
            lambda browser_session: browser_session.recategorize_method(
                class_name,
                is_meta,
                selector,
                new_category,
            ),
            class_name=class_name,
            selector=selector,
        )

    @mcp_server.tool()
    def gs_rename_category(class_name, old_category, new_category, is_meta=False):
        return run_mutation(
            'gs_rename_category',
            lambda browser_session: browser_session.rename_category(
                class_name,
                is_meta,
                old_category,
                new_category,
            ),
            class_name=class_name,
        )

    @mcp_server.tool()
    def gs_delete_class(dictionary_name, class_name):
        return run_mutation(
            'gs_delete_class',
            lambda browser_session: browser_session.delete_class(
                dictionary_name,
                class_name,
            ),
            class_name=class_name,
        )

    @mcp_server.tool()
    def gs_move_class(source_dictionary_name, destination_dictionary_name, class_name):
        return run_mutation(
            'gs_move_class',
            lambda browser_session: browser_session.move_class(
                source_dictionary_name,
                destination_dictionary_name,
                class_name,
            ),
            class_name=class_name,
        )

    @mcp_server.tool()
    def gs_add_dictionary(dictionary_name):
        return run_mutation(
            'gs_add_dictionary',
            lambda browser_session: browser_session.add_dictionary(dictionary_name),
            dictionary_name=dictionary_name,
        )

    @mcp_server.tool()
    def gs_move_dictionary(dictionary_name, direction):
        if direction not in ('up', 'down'):
            return {
                'ok': False,
                'error': {
                    'message': "Invalid direction value. Expected 'up' or 'down'."
                },
            }

        def move(browser_session):
            if direction == 'up':
                return browser_session.move_dictionary_up(dictionary_name)
            return browser_session.move_dictionary_down(dictionary_name)

        return run_mutation(
            'gs_move_dictionary',
            move,
            dictionary_name=dictionary_name,
        )

    @mcp_server.tool()
    def gs_commit():
        return run_mutation(
            'gs_commit',
            lambda browser_session: browser_session.commit_transaction(),
        )

    @mcp_server.tool()
    def gs_begin():
        return run_transaction_control(
            lambda browser_session: browser_session.begin_transaction()
        )

    @mcp_server.tool()
    def gs_abort():
        return run_transaction_control(
            lambda browser_session: browser_session.abort_transaction()
        )

    return tree_provider
