import logging
import threading
from concurrent.futures import Future


class ClassCategoryEntry:
    """The classes of one dictionary grouped by class category, plus its other globals."""

    def __init__(self, categories, globals_):
        self.categories = categories
        self.globals = globals_

    @classmethod
    def from_dictionary_entries(cls, dictionary_entries):
        categories = {}
        globals_ = []
        for entry in dictionary_entries:
            if entry.is_class:
                categories.setdefault(entry.category or '', []).append(entry.name)
            else:
                globals_.append(entry.name)
        for class_names in categories.values():
            class_names.sort()
        globals_.sort()
        return cls(categories, globals_)

    def category_names(self):
        return sorted(self.categories)

    def all_class_names(self):
        all_names = set()
        for class_names in self.categories.values():
            all_names.update(class_names)
        return sorted(all_names)

    def class_names_in(self, category_name):
        return self.categories.get(category_name, [])


class EnvironmentEntry:
    """The selectors of one class, keyed by (is_meta, environment_id, category)."""

    def __init__(self, categories):
        self.categories = categories

    @classmethod
    def from_environment_categories(cls, environment_categories):
        categories = {}
        for line in environment_categories:
            categories[(line.is_meta, line.environment_id, line.category)] = line.selectors
        return cls(categories)

    def category_names(self, is_meta, environment_id):
        return sorted(
            category
            for (entry_is_meta, entry_environment_id, category) in self.categories
            if entry_is_meta == is_meta and entry_environment_id == environment_id
        )

    def selectors_in(self, is_meta, environment_id, category):
        return self.categories.get((is_meta, environment_id, category), [])

    def categorized_selectors(self, is_meta, environment_id):
        categorized = []
        for category in self.category_names(is_meta, environment_id):
            for selector in self.selectors_in(is_meta, environment_id, category):
                categorized.append((selector, category))
        return sorted(categorized)


class BrowserCache:
    """Per-dictionary and per-class aggregations of remote browser state.

    Entries never expire: :meth:`clear` drops everything at once and starts a
    new epoch. Concurrent requests for the same key share a single fetch;
    a fetch that started in an earlier epoch answers its callers but is not
    stored.
    """

    def __init__(self):
        self.lock = threading.Lock()
        self.epoch = 0
        self.class_category_entries = {}
        self.environment_entries = {}
        self.fetches_in_flight = {}

    def clear(self):
        with self.lock:
            self.epoch = self.epoch + 1
            self.class_category_entries.clear()
            self.environment_entries.clear()
            self.fetches_in_flight.clear()
        logging.getLogger(__name__).debug('Browser cache cleared (epoch %s)', self.epoch)

    def class_category_entry(self, session_id, dictionary_index, fetch):
        return self.entry_for(
            self.class_category_entries,
            ('class_category', session_id, dictionary_index),
            lambda: ClassCategoryEntry.from_dictionary_entries(fetch()),
        )

    def cached_class_category_entry(self, session_id, dictionary_index):
        with self.lock:
            return self.class_category_entries.get(
                ('class_category', session_id, dictionary_index)
            )

    def environment_entry(
        self,
        session_id,
        dictionary_index,
        class_name,
        max_environment,
        fetch,
    ):
        # An entry only holds environments up to max_environment.
        return self.entry_for(
            self.environment_entries,
            ('environment', session_id, dictionary_index, class_name, max_environment),
            lambda: EnvironmentEntry.from_environment_categories(fetch()),
        )

    def entry_for(self, entries, key, build_entry):
        with self.lock:
            if key in entries:
                return entries[key]
            in_flight = self.fetches_in_flight.get(key)
            is_owner = in_flight is None
            if is_owner:
                in_flight = Future()
                self.fetches_in_flight[key] = (in_flight, self.epoch)
            else:
                in_flight = in_flight[0]
        if not is_owner:
            return in_flight.result()
        return self.fetch_as_owner(entries, key, build_entry, in_flight)

    def fetch_as_owner(self, entries, key, build_entry, in_flight):
        try:
            entry = build_entry()
        except BaseException as error:
            with self.lock:
                self.forget_fetch(key, in_flight)
            in_flight.set_exception(error)
            raise
        with self.lock:
            started_epoch = self.forget_fetch(key, in_flight)
            if started_epoch == self.epoch:
                entries[key] = entry
        in_flight.set_result(entry)
        return entry

    def forget_fetch(self, key, in_flight):
        registered = self.fetches_in_flight.get(key)
        if registered is not None and registered[0] is in_flight:
            del self.fetches_in_flight[key]
            return registered[1]
        return None
