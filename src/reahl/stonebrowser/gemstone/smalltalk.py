"""Smalltalk source generation for browser queries and mutations.

Every function here is pure: it builds the text of a Smalltalk snippet that,
when executed in a GemStone session, answers a single String. Caller supplied
text (names, selectors, categories, comments, method source) is only ever
embedded through :func:`string_literal` or :func:`symbol_literal`, which
double embedded quotes. That quoting is the only protection against a name
terminating its literal early, so no snippet may splice raw caller text.
"""

METHOD_SERIALIZATION_LIMIT = 500
TRUNCATION_MARKER = '#truncated'

SYMBOL_LIST = 'System myUserProfile symbolList'


def escape_string(value):
    return value.replace("'", "''")


def string_literal(value):
    return "'%s'" % escape_string(value)


def symbol_literal(value):
    return "#'%s'" % escape_string(value)


def smalltalk_boolean(value):
    return 'true' if value else 'false'


def class_reference(class_name):
    return '(%s objectNamed: %s)' % (SYMBOL_LIST, symbol_literal(class_name))


def receiver_expression(class_name, is_meta):
    reference = class_reference(class_name)
    return '%s class' % reference if is_meta else reference


def dictionary_reference(dictionary_name):
    return '(%s objectNamed: %s)' % (SYMBOL_LIST, symbol_literal(dictionary_name))


def dictionary_names_source():
    return (
        '| ws |\n'
        'ws := WriteStream on: String new.\n'
        '%s names do: [:each |\n'
        '  ws nextPutAll: each; lf].\n'
        'ws contents'
    ) % SYMBOL_LIST


def class_names_source(dictionary_name):
    return (
        '| ws dict |\n'
        'dict := %s.\n'
        'ws := WriteStream on: String new.\n'
        'dict keysAndValuesDo: [:k :v |\n'
        '  v isBehavior ifTrue: [ws nextPutAll: k; lf]].\n'
        'ws contents'
    ) % dictionary_reference(dictionary_name)


def dictionary_entries_source(dictionary_index):
    return (
        '| ws dict |\n'
        'dict := %s at: %d.\n'
        'ws := WriteStream on: Unicode7 new.\n'
        'dict keysAndValuesDo: [:k :v |\n'
        '  v isBehavior\n'
        "    ifTrue: [ws nextPutAll: '1'; tab; nextPutAll: (v category ifNil: ['']); "
        'tab; nextPutAll: k; lf]\n'
        "    ifFalse: [ws nextPutAll: '0'; tab; tab; nextPutAll: k asString; lf]].\n"
        'ws contents'
    ) % (SYMBOL_LIST, dictionary_index)


def method_categories_source(class_name, is_meta):
    return (
        '| ws |\n'
        'ws := WriteStream on: String new.\n'
        '%s categoryNames asSortedCollection do: [:each |\n'
        '  ws nextPutAll: each; lf].\n'
        'ws contents'
    ) % receiver_expression(class_name, is_meta)


def method_selectors_source(class_name, is_meta, category):
    return (
        '| ws |\n'
        'ws := WriteStream on: String new.\n'
        '(%s sortedSelectorsIn: %s)\n'
        '  do: [:each |\n'
        '    ws nextPutAll: each; lf].\n'
        'ws contents'
    ) % (receiver_expression(class_name, is_meta), string_literal(category))


def class_environments_source(dictionary_index, class_name, max_environment):
    return (
        '| class envs stream |\n'
        'envs := %d.\n'
        'class := (%s at: %d) at: %s.\n'
        'stream := WriteStream on: Unicode7 new.\n'
        '{ class class. class. } do: [:eachClass |\n'
        '  0 to: envs do: [:env |\n'
        '    (eachClass _unifiedCategorys: env) keysAndValuesDo: [:categoryName :selectors |\n'
        '      stream\n'
        '        nextPutAll: eachClass name; tab;\n'
        '        nextPutAll: env printString; tab;\n'
        '        nextPutAll: categoryName; tab;\n'
        '        yourself.\n'
        '      selectors do: [:each |\n'
        '        stream nextPutAll: each; tab.\n'
        '      ].\n'
        '      stream lf.\n'
        '    ].\n'
        '  ].\n'
        '].\n'
        'stream contents'
    ) % (max_environment, SYMBOL_LIST, dictionary_index, symbol_literal(class_name))


def method_source_source(class_name, is_meta, selector, environment_id=0):
    receiver = receiver_expression(class_name, is_meta)
    if environment_id == 0:
        return '(%s compiledMethodAt: %s) sourceString' % (
            receiver,
            symbol_literal(selector),
        )
    return '(%s compiledMethodAt: %s environmentId: %d) sourceString' % (
        receiver,
        symbol_literal(selector),
        environment_id,
    )


def class_definition_source(class_name):
    return '%s definition' % class_reference(class_name)


def compile_class_definition_source(source):
    # A class definition answers a Class; its name makes the result a String.
    return '(%s) name' % source


def class_comment_source(class_name):
    return '%s comment' % class_reference(class_name)


def set_class_comment_source(class_name, comment):
    return "%s comment: %s. 'ok'" % (
        class_reference(class_name),
        string_literal(comment),
    )


def delete_method_source(class_name, is_meta, selector):
    return "%s removeSelector: %s. 'ok'" % (
        receiver_expression(class_name, is_meta),
        symbol_literal(selector),
    )


def recategorize_method_source(class_name, is_meta, selector, new_category):
    return "%s moveMethod: %s toCategory: %s. 'ok'" % (
        receiver_expression(class_name, is_meta),
        symbol_literal(selector),
        string_literal(new_category),
    )


def rename_category_source(class_name, is_meta, old_category, new_category):
    return "%s renameCategory: %s to: %s. 'ok'" % (
        receiver_expression(class_name, is_meta),
        string_literal(old_category),
        string_literal(new_category),
    )


def delete_class_source(dictionary_name, class_name):
    return "%s\n  removeKey: %s ifAbsent: []. 'ok'" % (
        dictionary_reference(dictionary_name),
        symbol_literal(class_name),
    )


def move_class_source(source_dictionary_name, destination_dictionary_name, class_name):
    return (
        '| cls srcDict destDict |\n'
        'srcDict := %s.\n'
        'destDict := %s.\n'
        'cls := srcDict removeKey: %s.\n'
        'destDict at: %s put: cls.\n'
        "'ok'"
    ) % (
        dictionary_reference(source_dictionary_name),
        dictionary_reference(destination_dictionary_name),
        symbol_literal(class_name),
        symbol_literal(class_name),
    )


def add_dictionary_source(dictionary_name):
    return (
        '| dict |\n'
        'dict := SymbolDictionary new.\n'
        'dict name: %s.\n'
        '%s add: dict.\n'
        'dict name'
    ) % (symbol_literal(dictionary_name), SYMBOL_LIST)


def move_dictionary_up_source(dictionary_name):
    return (
        '| sl idx temp |\n'
        'sl := %s.\n'
        'idx := sl names indexOf: %s.\n'
        'idx > 1 ifTrue: [\n'
        '  temp := sl at: idx.\n'
        '  sl at: idx put: (sl at: idx - 1).\n'
        '  sl at: idx - 1 put: temp].\n'
        "'ok'"
    ) % (SYMBOL_LIST, symbol_literal(dictionary_name))


def move_dictionary_down_source(dictionary_name):
    return (
        '| sl idx temp |\n'
        'sl := %s.\n'
        'idx := sl names indexOf: %s.\n'
        'idx < sl size ifTrue: [\n'
        '  temp := sl at: idx.\n'
        '  sl at: idx put: (sl at: idx + 1).\n'
        '  sl at: idx + 1 put: temp].\n'
        "'ok'"
    ) % (SYMBOL_LIST, symbol_literal(dictionary_name))


def all_class_names_source():
    return (
        '| ws sl seen |\n'
        'ws := WriteStream on: Unicode7 new.\n'
        'sl := %s.\n'
        'seen := IdentitySet new.\n'
        '1 to: sl size do: [:idx |\n'
        '  | dict |\n'
        '  dict := sl at: idx.\n'
        '  dict keysAndValuesDo: [:k :v |\n'
        '    (v isBehavior and: [(seen includes: v) not]) ifTrue: [\n'
        '      seen add: v.\n'
        '      ws nextPutAll: idx printString; tab; nextPutAll: dict name; '
        'tab; nextPutAll: k; lf]]].\n'
        'ws contents'
    ) % SYMBOL_LIST


def class_dictionary_lookup_source():
    return (
        'sl := %s.\n'
        'classDict := IdentityDictionary new.\n'
        'sl do: [:dict |\n'
        '  dict keysAndValuesDo: [:k :v |\n'
        '    (v isBehavior and: [(classDict includesKey: v) not])\n'
        '      ifTrue: [classDict at: v put: dict name]]].\n'
    ) % SYMBOL_LIST


def method_serialization_source(environment_id):
    """Serialize the Array in ``methods``, one tab-separated line per method.

    Expects the temporaries ``methods stream limit classDict sl`` to be
    declared by the enclosing snippet. At most METHOD_SERIALIZATION_LIMIT
    rows are written; when rows are dropped a final TRUNCATION_MARKER line
    carries the total number of methods found.
    """
    return class_dictionary_lookup_source() + (
        'stream := WriteStream on: Unicode7 new.\n'
        'limit := methods size min: %d.\n'
        '1 to: limit do: [:i |\n'
        '  | each cls baseClass |\n'
        '  each := methods at: i.\n'
        '  cls := each inClass.\n'
        '  baseClass := cls theNonMetaClass.\n'
        '  stream\n'
        "    nextPutAll: (classDict at: baseClass ifAbsent: ['']); tab;\n"
        '    nextPutAll: baseClass name; tab;\n'
        "    nextPutAll: (cls isMeta ifTrue: ['1'] ifFalse: ['0']); tab;\n"
        '    nextPutAll: each selector; tab;\n'
        '    nextPutAll: ((cls categoryOfSelector: each selector environmentId: %d) '
        "ifNil: ['']); lf.\n"
        '].\n'
        'methods size > limit ifTrue: [\n'
        "  stream nextPutAll: '%s'; tab; nextPutAll: methods size printString; lf].\n"
        'stream contents'
    ) % (METHOD_SERIALIZATION_LIMIT, environment_id, TRUNCATION_MARKER)


def search_method_source_source(term, ignore_case):
    return (
        '| results methods stream limit classDict sl |\n'
        'results := ClassOrganizer new substringSearch: %s ignoreCase: %s.\n'
        'methods := results at: 1.\n'
    ) % (string_literal(term), smalltalk_boolean(ignore_case)) + (
        method_serialization_source(0)
    )


def senders_of_source(selector, environment_id=0):
    return (
        '| methods stream limit classDict sl |\n'
        'methods := ((ClassOrganizer new environmentId: %d; yourself)\n'
        '  sendersOf: %s) at: 1.\n'
    ) % (environment_id, symbol_literal(selector)) + (
        method_serialization_source(environment_id)
    )


def implementors_of_source(selector, environment_id=0):
    return (
        '| methods stream limit classDict sl |\n'
        'methods := ((ClassOrganizer new environmentId: %d; yourself)\n'
        '  implementorsOf: %s) asArray.\n'
    ) % (environment_id, symbol_literal(selector)) + (
        method_serialization_source(environment_id)
    )


def class_hierarchy_source(class_name):
    return (
        '| organizer class supers subs stream classDict sl |\n'
        'organizer := ClassOrganizer new.\n'
        'class := %s.\n'
        'supers := organizer allSuperclassesOf: class.\n'
        'subs := organizer subclassesOf: class.\n'
    ) % class_reference(class_name) + class_dictionary_lookup_source() + (
        'stream := WriteStream on: Unicode7 new.\n'
        'supers reverseDo: [:each |\n'
        "  stream nextPutAll: (classDict at: each ifAbsent: ['']); tab;\n"
        "    nextPutAll: each name; tab; nextPutAll: 'superclass'; lf].\n"
        "stream nextPutAll: (classDict at: class ifAbsent: ['']); tab;\n"
        "  nextPutAll: class name; tab; nextPutAll: 'self'; lf.\n"
        'subs asSortedCollection do: [:each |\n'
        "  stream nextPutAll: (classDict at: each ifAbsent: ['']); tab;\n"
        "    nextPutAll: each name; tab; nextPutAll: 'subclass'; lf].\n"
        'stream contents'
    )
