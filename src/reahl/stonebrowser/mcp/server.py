import inspect

from reahl.stonebrowser import __version__


class McpDependencyNotInstalled(Exception):
    pass


def import_fast_mcp():
    try:
        from mcp.server.fastmcp import FastMCP
    except ModuleNotFoundError as module_not_found_error:
        raise McpDependencyNotInstalled(
            'stonebrowser-mcp requires the mcp package. '
            'Install with: pip install reahl-stonebrowser'
        ) from module_not_found_error
    return FastMCP


def create_server(
    allow_mutation=False,
    allow_compile=False,
    settings=None,
):
    fast_mcp = import_fast_mcp()
    register_tools = import_tool_registration()
    try:
        constructor_signature = inspect.signature(fast_mcp)
    except (TypeError, ValueError):
        constructor_signature = None
    supports_keyword_arguments = any(
        parameter.kind == inspect.Parameter.VAR_KEYWORD
        for parameter in (
            constructor_signature.parameters.values()
            if constructor_signature
            else []
        )
    )
    server_arguments = {'name': 'StoneBrowserMCP'}
    if (
        supports_keyword_arguments
        or (
            constructor_signature
            and 'version' in constructor_signature.parameters
        )
    ):
        server_arguments['version'] = __version__
    mcp_server = fast_mcp(**server_arguments)
    register_tools(
        mcp_server,
        settings=settings,
        allow_mutation=allow_mutation,
        allow_compile=allow_compile,
    )
    return mcp_server


def import_tool_registration():
    try:
        from reahl.stonebrowser.mcp.tools import register_tools
    except ModuleNotFoundError as module_not_found_error:
        if module_not_found_error.name == 'reahl.ptongue':
            raise McpDependencyNotInstalled(
                'stonebrowser-mcp requires reahl-parseltongue. '
                'Install project dependencies first.'
            ) from module_not_found_error
        raise
    return register_tools
