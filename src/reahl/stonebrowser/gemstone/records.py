"""Decoding of the newline and tab delimited text answered by browser queries.

Lines that do not carry the expected number of fields, or whose integer
fields are not base 10 integers, are dropped rather than reported: partial
or garbled remote output degrades to fewer records, never to an error.
"""

from reahl.stonebrowser.gemstone.smalltalk import TRUNCATION_MARKER


class Record:
    field_names = ()

    def field_values(self):
        return tuple(getattr(self, name) for name in self.field_names)

    def __eq__(self, other):
        return type(self) is type(other) and self.field_values() == other.field_values()

    def __hash__(self):
        return hash((type(self).__name__,) + tuple(
            tuple(value) if isinstance(value, list) else value
            for value in self.field_values()
        ))

    def __repr__(self):
        return '%s(%s)' % (
            type(self).__name__,
            ', '.join(
                '%s=%r' % (name, value)
                for name, value in zip(self.field_names, self.field_values())
            ),
        )

    def as_dict(self):
        return dict(zip(self.field_names, self.field_values()))


class DictionaryEntry(Record):
    field_names = ('is_class', 'category', 'name')

    def __init__(self, is_class, category, name):
        self.is_class = is_class
        self.category = category
        self.name = name


class EnvironmentCategory(Record):
    field_names = ('is_meta', 'environment_id', 'category', 'selectors')

    def __init__(self, is_meta, environment_id, category, selectors):
        self.is_meta = is_meta
        self.environment_id = environment_id
        self.category = category
        self.selectors = selectors


class ClassNameEntry(Record):
    field_names = ('dictionary_index', 'dictionary_name', 'class_name')

    def __init__(self, dictionary_index, dictionary_name, class_name):
        self.dictionary_index = dictionary_index
        self.dictionary_name = dictionary_name
        self.class_name = class_name


class MethodSearchResult(Record):
    field_names = ('dictionary_name', 'class_name', 'is_meta', 'selector', 'category')

    def __init__(self, dictionary_name, class_name, is_meta, selector, category):
        self.dictionary_name = dictionary_name
        self.class_name = class_name
        self.is_meta = is_meta
        self.selector = selector
        self.category = category


class ClassHierarchyEntry(Record):
    field_names = ('dictionary_name', 'class_name', 'kind')
    kinds = ('superclass', 'self', 'subclass')

    def __init__(self, dictionary_name, class_name, kind):
        self.dictionary_name = dictionary_name
        self.class_name = class_name
        self.kind = kind


class MethodSearchResults(list):
    """The methods found by a search, plus whether the remote side dropped any."""

    def __init__(self, results=(), total_count=None):
        super().__init__(results)
        self.total_count = len(self) if total_count is None else total_count

    @property
    def truncated(self):
        return self.total_count > len(self)


def split_lines(text):
    return [line for line in text.split('\n') if line]


def tab_delimited_records(text, minimum_field_count):
    records = []
    for line in split_lines(text):
        fields = line.split('\t')
        if len(fields) >= minimum_field_count:
            records.append(fields)
    return records


def parsed_integer(text):
    try:
        return int(text, 10)
    except ValueError:
        return None


def parse_dictionary_entries(text):
    entries = []
    for fields in tab_delimited_records(text, 3):
        is_class_flag, category, name = fields[:3]
        if name:
            entries.append(DictionaryEntry(is_class_flag == '1', category, name))
    return entries


def parse_class_environments(text):
    environment_categories = []
    for line in split_lines(text):
        fields = [field for field in line.split('\t') if field]
        if len(fields) < 3:
            continue
        receiver_name, environment_text, category = fields[:3]
        environment_id = parsed_integer(environment_text)
        if environment_id is None:
            continue
        environment_categories.append(
            EnvironmentCategory(
                receiver_name.endswith(' class'),
                environment_id,
                category,
                sorted(set(fields[3:])),
            )
        )
    return environment_categories


def parse_all_class_names(text):
    entries = []
    for fields in tab_delimited_records(text, 3):
        dictionary_index = parsed_integer(fields[0])
        if dictionary_index is None:
            continue
        entries.append(ClassNameEntry(dictionary_index, fields[1], fields[2]))
    return entries


def parse_method_search_results(text):
    results = []
    total_count = None
    for line in split_lines(text):
        fields = line.split('\t')
        if fields[0] == TRUNCATION_MARKER:
            if len(fields) > 1:
                total_count = parsed_integer(fields[1])
            continue
        if len(fields) < 5:
            continue
        dictionary_name, class_name, meta_flag, selector, category = fields[:5]
        results.append(
            MethodSearchResult(
                dictionary_name,
                class_name,
                meta_flag == '1',
                selector,
                category,
            )
        )
    return MethodSearchResults(results, total_count=total_count)


def parse_class_hierarchy(text):
    entries = []
    for fields in tab_delimited_records(text, 3):
        dictionary_name, class_name, kind = fields[:3]
        if kind in ClassHierarchyEntry.kinds:
            entries.append(ClassHierarchyEntry(dictionary_name, class_name, kind))
    return entries
